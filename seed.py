import asyncio
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from schoolms.core.config import settings
from schoolms.core.db import AsyncSessionLocal
from schoolms.core.security import hash_password
from schoolms.core.permissions import ALL_PERMISSIONS, DEFAULT_ROLES, permission_module
from schoolms.models.auth import User, Role, Permission
from schoolms.models.settings import SystemSettings
from schoolms.services.library import get_library_settings

ADMIN_PHONE = "+9779800000000"
ADMIN_EMAIL = "admin@school.edu.np"

DEFAULT_SYSTEM_SETTINGS = {
    "school_name": (settings.SCHOOL_NAME, "School name printed on receipts and grade sheets"),
    "currency": (settings.CURRENCY, "Currency code for fee amounts"),
    "academic_year": ("2082", "Current academic year (BS)"),
}


async def seed_database():
    async with AsyncSessionLocal() as db:
        print("🌱 Starting database seed...")

        print("📝 Creating permissions...")
        permissions_map = {}
        for perm_data in ALL_PERMISSIONS:
            result = await db.execute(select(Permission).where(Permission.code == perm_data["code"]))
            existing_perm = result.scalar_one_or_none()

            if not existing_perm:
                perm = Permission(
                    code=perm_data["code"],
                    module=permission_module(perm_data["code"]),
                    description=perm_data["description"],
                )
                db.add(perm)
                await db.flush()
                permissions_map[perm_data["code"]] = perm
                print(f"  ✅ Created permission: {perm_data['code']}")
            else:
                permissions_map[perm_data["code"]] = existing_perm
                print(f"  ⏭️  Permission exists: {perm_data['code']}")

        await db.commit()

        print("\n👥 Creating default roles...")
        for role_name, role_config in DEFAULT_ROLES.items():
            result = await db.execute(
                select(Role).options(selectinload(Role.permissions)).where(Role.name == role_name)
            )
            existing_role = result.scalar_one_or_none()
            wanted = [permissions_map[code] for code in role_config["permissions"] if code in permissions_map]

            if not existing_role:
                role = Role(name=role_name, description=role_config["description"], is_system=True)
                role.permissions = wanted
                db.add(role)
                await db.flush()
                print(f"  ✅ Created role: {role_name} with {len(wanted)} permissions")
            else:
                # Newly added permission codes are granted to existing default roles
                current = {p.code for p in existing_role.permissions}
                added = [p for p in wanted if p.code not in current]
                existing_role.permissions.extend(added)
                existing_role.is_system = True
                print(f"  ⏭️  Role exists: {role_name} (+{len(added)} permissions)")

        await db.commit()

        print("\n⚙️  Creating system settings...")
        for key, (value, description) in DEFAULT_SYSTEM_SETTINGS.items():
            result = await db.execute(select(SystemSettings).where(SystemSettings.key == key))
            if not result.scalar_one_or_none():
                db.add(SystemSettings(key=key, value=value, description=description))
                print(f"  ✅ Created setting: {key}")
        await db.commit()

        library_settings = await get_library_settings(db)
        print(
            f"  📚 Library: {library_settings.fine_per_day}/day fine, "
            f"{library_settings.max_books_per_student} books, {library_settings.default_issue_days} days"
        )

        print("\n🔐 Creating super admin user...")
        result = await db.execute(select(User).where(User.phone == ADMIN_PHONE))
        existing_admin = result.scalar_one_or_none()

        if not existing_admin:
            super_admin = User(
                phone=ADMIN_PHONE,
                email=ADMIN_EMAIL,
                full_name="Super Admin",
                hashed_password=hash_password("admin123"),
                is_super_admin=True,
            )
            super_admin_role = await db.execute(select(Role).where(Role.name == "Super Admin"))
            role = super_admin_role.scalar_one_or_none()
            if role:
                super_admin.roles = [role]
            db.add(super_admin)
            await db.commit()
            print("  ✅ Created super admin user")
            print(f"  📱 Phone: {ADMIN_PHONE}")
            print("  🔑 Password: admin123")
            print("  ⚠️  PLEASE CHANGE THE PASSWORD IMMEDIATELY!")
        else:
            print("  ⏭️  Super admin already exists")

        print("\n✨ Database seeding completed!\n")


if __name__ == "__main__":
    asyncio.run(seed_database())
