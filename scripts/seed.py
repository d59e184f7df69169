"""Database seeder: sample users, questions and answers for local development."""
import argparse
import asyncio
import time

from sqlalchemy import func, select

from stackit.auth import create_access_token, hash_password
from stackit.database import Base, async_session, engine
from stackit.models import Answer, Question, QuestionTag, User

QUESTIONS = [
    {
        "title": "How to implement JWT authentication in React?",
        "description": "I'm building a React app and need to implement JWT authentication. What's the best approach?",
        "author": "john_doe",
        "tags": ["React", "JWT", "Authentication"],
        "votes": 5,
    },
    {
        "title": "Best practices for state management in React",
        "description": "What are the current best practices for state management in React applications?",
        "author": "john_doe",
        "tags": ["React", "State Management"],
        "votes": 3,
    },
    {
        "title": "How to optimize performance in Node.js applications?",
        "description": "What are the key techniques for improving performance in Node.js applications?",
        "author": "admin",
        "tags": ["Node.js", "Performance", "Backend"],
        "votes": 7,
    },
    {
        "title": "TypeScript vs JavaScript: When to use which?",
        "description": "I'm starting a new project and wondering whether to use TypeScript or JavaScript. What are the pros and cons?",
        "author": "john_doe",
        "tags": ["TypeScript", "JavaScript", "Programming"],
        "votes": 12,
    },
    {
        "title": "How to deploy a React app to AWS?",
        "description": "What's the best way to deploy a React application to AWS? Looking for step-by-step guidance.",
        "author": "admin",
        "tags": ["React", "AWS", "Deployment", "DevOps"],
        "votes": 9,
    },
]

# (question index, author, votes, content)
ANSWERS = [
    (0, "admin", 8, "You can use libraries like `react-jwt` or implement it manually with axios interceptors."),
    (0, "john_doe", 5, "Another approach is to use React Context API with JWT tokens stored in localStorage."),
    (1, "admin", 6, "For state management, I recommend Redux Toolkit for complex applications or Zustand for simpler ones."),
]


async def seed(reset: bool = False):
    start = time.perf_counter()

    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        existing = (await session.execute(select(func.count()).select_from(User))).scalar_one()
        if existing and not reset:
            print(f"Database already has {existing} users; use --reset to reseed")
            return

        users = {
            "admin": User(
                username="admin",
                email="admin@stackit.com",
                password_hash=hash_password("admin123"),
                role="admin",
                reputation=1000,
            ),
            "john_doe": User(
                username="john_doe",
                email="john@example.com",
                password_hash=hash_password("user123"),
                role="user",
                reputation=150,
            ),
        }
        session.add_all(users.values())
        await session.flush()

        questions = []
        for data in QUESTIONS:
            question = Question(
                title=data["title"],
                description=data["description"],
                author_id=users[data["author"]].id,
                votes=data["votes"],
                tag_links=[QuestionTag(position=i, name=t) for i, t in enumerate(data["tags"])],
            )
            session.add(question)
            questions.append(question)
        await session.flush()

        for index, author, votes, content in ANSWERS:
            session.add(Answer(
                question_id=questions[index].id,
                author_id=users[author].id,
                votes=votes,
                content=content,
            ))
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"Seeding complete in {elapsed:.1f}s")
    print(f"  Users: {len(users)}")
    print(f"  Questions: {len(QUESTIONS)}")
    print(f"  Answers: {len(ANSWERS)}")
    for name, user in users.items():
        print(f"  Token for {name}: {create_access_token(user.id, user.role)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the StackIt database")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables first")
    args = parser.parse_args()
    asyncio.run(seed(reset=args.reset))


if __name__ == "__main__":
    main()
