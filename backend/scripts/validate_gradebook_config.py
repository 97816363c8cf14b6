"""
Report grading configuration problems for one or more classes.

Run with:
  python scripts/validate_gradebook_config.py <class_id> [<class_id> ...]
  python scripts/validate_gradebook_config.py --all

Exits with status 1 if any audited class has a problem.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path

script_path = Path(__file__).resolve()
backend_root = script_path.parents[1]
sys.path.append(str(backend_root))

from gradebook.core.config import settings  # noqa: E402
from gradebook.core.db import SessionLocal  # noqa: E402
from gradebook.core.errors import NotFoundError  # noqa: E402
from gradebook.models.classroom import SchoolClass  # noqa: E402
from gradebook.services.validation_service import validation_service  # noqa: E402

logger = logging.getLogger("validate_gradebook_config")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Audit class grading configuration")
    parser.add_argument("class_ids", nargs="*", type=uuid.UUID, help="Class ids to audit")
    parser.add_argument("--all", action="store_true", help="Audit every class")
    parser.add_argument("--json", action="store_true", help="Print one JSON report per class")
    args = parser.parse_args(argv)
    if not args.class_ids and not args.all:
        parser.error("pass at least one class id or --all")
    return args


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL)

    db = SessionLocal()
    try:
        class_ids = list(args.class_ids)
        if args.all:
            class_ids = [row[0] for row in db.query(SchoolClass.id).order_by(SchoolClass.name)]

        problems = 0
        for class_id in class_ids:
            try:
                audit = validation_service.audit_class_configuration(db, class_id)
            except NotFoundError as exc:
                logger.error(exc.message)
                problems += 1
                continue

            if args.json:
                print(json.dumps(audit.model_dump(mode="json")))
            elif audit.is_valid:
                print(f"{class_id}: ok")
            else:
                print(f"{class_id}: problems found")
                for subject_id in audit.zero_credit_subject_ids:
                    print(f"  subject {subject_id} has no credits")
                for subject_id in audit.unconfigured_subject_ids:
                    print(f"  subject {subject_id} has no assessment config")
                for issue in audit.unbalanced_terms:
                    print(f"  term {issue.term_name} period weights sum to {issue.weight_sum:g}")
                if audit.gpa_scale_error:
                    print(f"  GPA scale: {audit.gpa_scale_error}")
                for message in audit.missing_configuration:
                    print(f"  {message}")

            if not audit.is_valid:
                problems += 1
    finally:
        db.close()

    return 1 if problems else 0


if __name__ == "__main__":
    sys.exit(main())
