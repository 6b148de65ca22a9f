from src.app.config import settings
from src.db.base import SessionLocal
from src.services.accounts import AccountService
from src.store import SqlStore


def create_root_admin():
    store = SqlStore(SessionLocal)
    store.create_schema()

    existing = store.get_protected_account()
    if existing:
        print(f"✔ Root administrator already exists: {existing.username}")
        return

    account = AccountService(store).provision_root_admin(
        settings.ROOT_ADMIN_USERNAME,
        settings.ROOT_ADMIN_PASSWORD,
        settings.ROOT_ADMIN_EMAIL,
    )
    print(f"➕ Created root administrator: {account.username}")


if __name__ == "__main__":
    create_root_admin()
