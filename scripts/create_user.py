import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from registration.config import load_settings
from registration.database import Database, UniqueConstraintViolation, resolve_database_path
from registration.validation import validate_registration


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register a user directly in the database")
    parser.add_argument("username", help="Unique username")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("age", help="Age between 1 and 150")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to REGISTRATION_DB_PATH or data/users.sqlite3)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    result = validate_registration(args.username, args.email, args.age)
    if result.failure is not None:
        print(f"Error: {result.failure.message}", file=sys.stderr)
        return 2

    if args.db_path:
        db_path = resolve_database_path(args.db_path)
    else:
        db_path = load_settings().database_path

    database = Database(db_path)
    database.initialize()

    request = result.request
    try:
        user = database.create_user(request.username, request.email, request.age)
    except UniqueConstraintViolation as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.username} <{user.email}>, age {user.age}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
