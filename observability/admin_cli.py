"""Lightweight CLI helpers for inspecting stored tests and their responses."""
from __future__ import annotations

import argparse
import json
from typing import List, Optional

from services.authoring import list_test_summaries
from storage.responses import list_test_responses, recent_test_responses


def list_tests() -> None:
    for row in list_test_summaries():
        print(
            f"{row['test_id']} {row['title']!r} questions={row['question_count']} "
            f"duration={row['duration']}m batches={','.join(row['batches'])} link={row['link']}"
        )


def tail_responses(limit: int = 20) -> None:
    for row in recent_test_responses(limit):
        print(
            f"[{row['submitted_at']}] {row['test_id']}/{row['session_id']} "
            f"{row['learner_email']} ({row['batch']}) score={row['score']}/{row['total_questions']} "
            f"trigger={row['trigger']} violations={json.dumps(row['violations'], sort_keys=True)}"
        )


def show_responses(test_id: str, batch: Optional[str] = None) -> None:
    for row in list_test_responses(test_id, batch=batch):
        print(
            f"{row['learner_name']} <{row['learner_email']}> batch={row['batch']} "
            f"score={row['score']}/{row['total_questions']} time={row['time_taken']}s "
            f"camera={'ok' if row['camera_healthy'] else 'lost'}"
        )


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--list-tests", action="store_true", help="List stored tests, newest first")
    parser.add_argument("--tail-responses", type=int, help="Show the latest submitted responses")
    parser.add_argument("--test", help="List responses for one test id")
    parser.add_argument("--batch", help="Restrict --test output to one batch")
    args = parser.parse_args(argv)

    if args.list_tests:
        list_tests()
    if args.tail_responses:
        tail_responses(args.tail_responses)
    if args.test:
        show_responses(args.test, batch=args.batch)


if __name__ == "__main__":
    main()
