"""Dump a Schools.by class or teacher timetable as JSON.

Standalone CLI script. Logs in with credentials from .env (or reuses cookies
from the environment), fetches the timetable and prints JSON to stdout.

Run with: python scripts/fetch_timetable.py --class-id 8
Teacher:  python scripts/fetch_timetable.py --teacher-id 108105
Journals: python scripts/fetch_timetable.py --class-id 8 --walk-journals
Bells:    python scripts/fetch_timetable.py --bells

Environment (.env):
  SCHOOLSBY_BASE_URL       school subdomain, e.g. https://demo.schools.by/
  SCHOOLSBY_USERNAME / SCHOOLSBY_PASSWORD   login credentials
  SCHOOLSBY_CSRFTOKEN / SCHOOLSBY_SESSIONID cookies (skip login when set)

Exit codes:
  0 = success (JSON on stdout)
  1 = error (message on stderr)
"""

import argparse
import json
import os
import sys

from dotenv import load_dotenv

load_dotenv()

# Add project root to path for src imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from src.schoolsby.client import SchoolsByClient  # noqa: E402
from src.schoolsby.config import get_config  # noqa: E402
from src.schoolsby.errors import SchoolsByError  # noqa: E402
from src.schoolsby.logging import get_logger, setup_logging  # noqa: E402
from src.schoolsby.models import SCHOOL_DAYS, Credentials  # noqa: E402

log = get_logger("fetch_timetable")


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Dump a Schools.by timetable as JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--class-id", type=int, help="Class timetable to fetch.")
    target.add_argument("--teacher-id", type=int, help="Teacher timetable to fetch.")
    target.add_argument("--bells", action="store_true", help="Fetch the bell schedule.")
    parser.add_argument(
        "--walk-journals",
        action="store_true",
        help="Resolve teachers of class timetable slots from their journals.",
    )
    return parser.parse_args()


def _credentials(client: SchoolsByClient) -> Credentials:
    csrf_token = os.getenv("SCHOOLSBY_CSRFTOKEN", "")
    session_id = os.getenv("SCHOOLSBY_SESSIONID", "")
    if csrf_token and session_id:
        log.info("credentials_from_env")
        return Credentials(csrf_token=csrf_token, session_id=session_id)
    return client.login(
        os.getenv("SCHOOLSBY_USERNAME", ""), os.getenv("SCHOOLSBY_PASSWORD", "")
    )


def _timetable_json(timetable) -> dict:
    return {
        day.name.lower(): [lesson.model_dump(mode="json") for lesson in timetable[day]]
        for day in SCHOOL_DAYS
    }


def main(args: argparse.Namespace) -> None:
    config = get_config()
    setup_logging(config=config)

    with SchoolsByClient(config) as client:
        credentials = _credentials(client)

        if args.bells:
            result = client.get_bells(credentials).model_dump(mode="json")
        elif args.teacher_id is not None:
            timetable = client.get_teacher_timetable(args.teacher_id, credentials)
            result = {
                "first_shift": _timetable_json(timetable.first_shift),
                "second_shift": _timetable_json(timetable.second_shift),
            }
        else:
            timetable = client.get_class_timetable(
                args.class_id, credentials, walk_journals=args.walk_journals
            )
            result = _timetable_json(timetable)

    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    args = _parse_args()
    try:
        main(args)
    except SchoolsByError as e:
        print(f"ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)
