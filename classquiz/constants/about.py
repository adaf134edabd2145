"""Static metadata describing ClassQuiz."""

APP_NAME = "ClassQuiz"
APP_VERSION = "0.1.0"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ClassQuiz lets instructors assemble quizzes from a shared question bank, "
    "share them with a class, and review per-category results once students finish."
)
