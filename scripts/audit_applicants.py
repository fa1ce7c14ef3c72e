#!/usr/bin/env python3
"""
Applicant Shape Audit

Counts applicant records per stored shape (current / legacy / corrupted)
across all projects. Read-only: legacy records are upgraded lazily the
first time their status changes, never by this script.

Usage: python scripts/audit_applicants.py
"""
import sys
sys.path.insert(0, '.')

from collections import Counter

from app.db.mongodb import get_collection, COLLECTIONS
from app.services.applicants import classify, CorruptedApplicant, CurrentApplicant, LegacyApplicant

SHAPE_NAMES = {
    CurrentApplicant: "current",
    LegacyApplicant: "legacy",
    CorruptedApplicant: "corrupted",
}


def audit(collection) -> Counter:
    counts = Counter()
    for project in collection.find({}, {"applicants": 1}):
        shapes = Counter(SHAPE_NAMES[type(classify(raw))] for raw in project.get("applicants") or [])
        counts.update(shapes)
        if shapes["legacy"] or shapes["corrupted"]:
            print(f"    {project['_id']}: legacy={shapes['legacy']} corrupted={shapes['corrupted']}")
    return counts


def main():
    print("=" * 50)
    print("APPLICANT SHAPE AUDIT")
    print("=" * 50)
    counts = audit(get_collection(COLLECTIONS["projects"]))
    print(f"\n    current:   {counts['current']}")
    print(f"    legacy:    {counts['legacy']}")
    print(f"    corrupted: {counts['corrupted']}")


if __name__ == "__main__":
    main()
