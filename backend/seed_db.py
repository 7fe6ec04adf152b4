"""One-time DB setup: create tables and seed demo users and quizzes."""
from app.db.session import Base, get_engine, get_session_factory
from app.db.models import Quiz, RoleEnum, User
from app.core.security import hash_password
from app.schemas.quiz import QuizCreate
from app.services.quiz_catalog import create_quiz

USERS = [
    ("John Doe", "john@example.com", "Password123", RoleEnum.USER),
    ("Jane Smith", "jane@example.com", "Password123", RoleEnum.USER),
    ("Admin User", "admin@example.com", "AdminPass123", RoleEnum.ADMIN),
]


def _question(text, options, correct, explanation, difficulty, points):
    return {
        "text": text,
        "options": [{"text": o, "is_correct": i == correct} for i, o in enumerate(options)],
        "explanation": explanation,
        "difficulty": difficulty,
        "points": points,
    }


# (creator email, quiz payload)
QUIZZES = [
    (
        "john@example.com",
        {
            "title": "JavaScript Fundamentals",
            "description": "Test your knowledge of JavaScript basics",
            "category": "Programming",
            "difficulty": "easy",
            "time_limit": 15,
            "questions": [
                _question(
                    "What is the correct way to declare a variable in JavaScript?",
                    ["var x = 5;", "variable x = 5;", "v x = 5;", "declare x = 5;"],
                    0,
                    "Variables in JavaScript can be declared using var, let, or const keywords.",
                    "easy",
                    1,
                ),
                _question(
                    "Which method is used to add an element to the end of an array?",
                    ["push()", "add()", "append()", "insert()"],
                    0,
                    "The push() method adds one or more elements to the end of an array.",
                    "easy",
                    1,
                ),
            ],
        },
    ),
    (
        "jane@example.com",
        {
            "title": "React Components",
            "description": "Understanding React component lifecycle and hooks",
            "category": "Frontend",
            "difficulty": "medium",
            "time_limit": 20,
            "questions": [
                _question(
                    "What hook is used to manage state in functional components?",
                    ["useState", "useEffect", "useContext", "useReducer"],
                    0,
                    "useState is the hook used to add state to functional components.",
                    "medium",
                    2,
                ),
                _question(
                    "When does useEffect run by default?",
                    ["After every render", "Only on mount", "Only on unmount", "Never automatically"],
                    0,
                    "useEffect runs after every render by default, unless dependencies are specified.",
                    "medium",
                    2,
                ),
            ],
        },
    ),
    (
        "admin@example.com",
        {
            "title": "Node.js Advanced Concepts",
            "description": "Deep dive into Node.js internals and best practices",
            "category": "Backend",
            "difficulty": "hard",
            "time_limit": 30,
            "questions": [
                _question(
                    "What is the Event Loop in Node.js?",
                    [
                        "A mechanism that handles asynchronous operations",
                        "A loop that runs events continuously",
                        "A way to handle HTTP requests",
                        "A database connection pool",
                    ],
                    0,
                    "The Event Loop is Node.js mechanism for handling asynchronous operations.",
                    "hard",
                    3,
                ),
            ],
        },
    ),
]

# 1. Create all tables
engine = get_engine()
Base.metadata.create_all(bind=engine)
print("✅ All tables created")

session_factory = get_session_factory()
with session_factory() as db:
    # 2. Demo users
    users = {}
    for name, email, password, role in USERS:
        user = db.query(User).filter(User.email == email).first()
        if not user:
            user = User(
                name=name,
                email=email,
                hashed_password=hash_password(password),
                role=role,
            )
            db.add(user)
            db.commit()
            db.refresh(user)
            print(f"✅ Created {role.value}: {email} / {password}")
        else:
            print(f"  {email} already exists")
        users[email] = user

    # 3. Demo quizzes
    for creator_email, payload in QUIZZES:
        if db.query(Quiz).filter(Quiz.title == payload["title"]).first():
            print(f"  Quiz '{payload['title']}' already exists")
            continue
        quiz = create_quiz(db, QuizCreate.model_validate(payload), users[creator_email])
        print(f"✅ Created quiz: {quiz.title} ({quiz.total_points} pts)")

print("\n🎉 Database seeded successfully!")
