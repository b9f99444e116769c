"""List classes with their term, course and professor using the app's DB config.
Run from the repo root:

    python scripts/list_classes.py [--term Fall] [--year 2025]

Filters use the same semantics as the admin filter bar.
"""

import argparse
import sys
import traceback

# Ensure we can import the app modules from the repo root
sys.path.insert(0, ".")

from app import create_app
from models import Class
from utils.filter_utils import FilterSelection, build_class_filters


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    for name in ("term", "year", "professor_id", "course_id", "class_id"):
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name)
    args = parser.parse_args(argv)

    selection = FilterSelection.from_args(vars(args))
    app = create_app()
    try:
        with app.app_context():
            rows = (
                Class.query.filter(*build_class_filters(selection))
                .order_by(Class.year.desc(), Class.term, Class.class_code)
                .limit(200)
                .all()
            )
            if not rows:
                print("No classes found for the given filters (empty result set).")
                return 0
            print(f"Found {len(rows)} classes (showing up to 200):\n")
            for c in rows:
                print(
                    f"{c.class_code:<14} {c.term:<7} {c.year}  {c.course.code:<10} "
                    f"sec {c.section:<4} {c.professor.display_name}"
                )
    except Exception:
        print("Database query failed:")
        traceback.print_exc()
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
