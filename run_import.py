import argparse
import json

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import laundromat listings from a CSV file.")
    parser.add_argument("path", help="CSV file with a header row")
    args = parser.parse_args(argv)

    # imported late so POSTGRES_URL from .env is visible to the engine
    from laundrylocator.crud import SqlStorage
    from laundrylocator.csv_import import import_file
    from laundrylocator.db import Base, SessionLocal, engine
    from laundrylocator import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        result = import_file(args.path, SqlStorage(session))
    finally:
        session.close()

    print(json.dumps(result.model_dump(), indent=2))
    return 0 if result.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
