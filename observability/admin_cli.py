"""Lightweight CLI helpers for inspecting persisted sessions and skill profiles."""
from __future__ import annotations

import argparse

from storage.sessions import SqliteSessionRepository
from storage.skills import SqliteSkillRepository
from storage.sqlite import get_conn


def tail_sessions(limit: int = 20) -> None:
    with get_conn() as conn:
        rows = conn.execute(
            """
            SELECT session_id, user_id, status, turn_count, max_depth, exhausted_count, score, average_engagement,
                   updated_at
            FROM interview_sessions
            ORDER BY updated_at DESC
            LIMIT ?
            """,
            (limit,),
        ).fetchall()
    for row in rows:
        print(
            f"[{row['updated_at']}] {row['session_id']} user={row['user_id']} {row['status']} "
            f"turns={row['turn_count']} depth={row['max_depth']} exhausted={row['exhausted_count']} score={row['score']} "
            f"engagement={row['average_engagement']}"
        )


def show_session(session_id: str) -> None:
    record = SqliteSessionRepository().get(session_id)
    if record is None:
        print(f"session {session_id} not found")
        return
    print(record.model_dump_json(indent=2))


def show_skills(user_id: str) -> None:
    repo = SqliteSkillRepository()
    for skill in repo.list_skills(user_id):
        print(
            f"{skill.skill_name:<24} proficiency={skill.proficiency_score:>3} mentions={skill.mention_count} "
            f"confidence={skill.average_confidence:.2f} engagement={skill.average_engagement} "
            f"depth={skill.topic_depth_average:.1f}"
        )


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--session", help="Dump one session record including its topic tree")
    parser.add_argument("--skills", metavar="USER_ID", help="Show the skill profile for a user")
    args = parser.parse_args()

    if args.tail_sessions:
        tail_sessions(args.tail_sessions)
    if args.session:
        show_session(args.session)
    if args.skills:
        show_skills(args.skills)


if __name__ == "__main__":
    main()
