import asyncio
import sys

from ..config import DB_PATH
from ..core.progress_store import ProgressStore
from ..database.storage import SqliteStorage


async def run_reset(show_id: int, db_path: str = str(DB_PATH), dry_run: bool = True) -> int:
    storage = SqliteStorage(db_path)
    await storage.initialize()
    store = ProgressStore(storage)

    print(f"\nScanning progress records for show {show_id} in: {db_path}")
    if dry_run:
        print("[DRY RUN] No records will be actually deleted.")
    print("-" * 60)

    show_keys = await store.list_show_keys(show_id)
    latest = await store.get_latest_pointer(show_id)

    if not show_keys and latest is None:
        print("No progress stored for this show.")
        return 0

    print(f"Found {len(show_keys)} episode records:")
    for key in show_keys[:20]:  # Show first 20
        print(f"  - {key}")

    if len(show_keys) > 20:
        print(f"  ... and {len(show_keys) - 20} more.")

    if latest is not None:
        print(f"Latest watched pointer: {latest}")

    if dry_run:
        print("\nTo actually delete these records, run with --apply")
        return 0

    removed = await store.reset_show(show_id)
    print(f"\nSuccessfully removed {removed} records.")
    return removed


def main(argv=None):
    args = list(sys.argv[1:] if argv is None else argv)
    dry_run = True
    db_path = str(DB_PATH)

    if "--apply" in args:
        dry_run = False
        args.remove("--apply")

    if "--db" in args:
        idx = args.index("--db")
        if idx + 1 >= len(args):
            print("Error: --db needs a path")
            return 2
        db_path = args[idx + 1]
        del args[idx:idx + 2]

    if len(args) != 1 or not args[0].lstrip("-").isdigit():
        print("Usage: watchprogress-reset SHOW_ID [--db PATH] [--apply]")
        return 2

    asyncio.run(run_reset(int(args[0]), db_path, dry_run))
    return 0


if __name__ == "__main__":
    sys.exit(main())
