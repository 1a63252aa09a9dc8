"""Bootstrap an administrator: activate an account and give it the admin role.

Usage: python scripts/promote_admin.py <email>

The account must have signed in once so its profile row exists.
"""
import asyncio
import sys

sys.path.insert(0, ".")

from sqlalchemy import select

from opsconsole.database import async_session_maker, close_db
from opsconsole.kernel.access import AdminService
from opsconsole.kernel.models import AccountRole, Profile


async def main(email: str) -> int:
    async with async_session_maker() as session:
        result = await session.execute(select(Profile).where(Profile.email == email.lower().strip()))
        profile = result.scalar_one_or_none()
        if profile is None:
            print(f"No profile for {email}; sign in once first")
            return 1

        service = AdminService(session)
        await service.approve(profile.id)
        await service.change_role(profile.id, AccountRole.ADMIN)
        await session.commit()
        print(f"{email} ({profile.id}) is now an active admin")

    await close_db()
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1])))
