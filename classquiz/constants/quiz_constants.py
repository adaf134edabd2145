"""Quiz-related constants shared across the core and server layers."""

DEFAULT_SEED_DB_PATH: str = "attached_assets/QuizAppDb.sqlite"

# Accepted spellings for the "correct" column of the alternatives CSV.
TRUTHY_TOKENS: frozenset[str] = frozenset({"1", "true", "t", "yes", "y", "sim", "s", "verdadeiro"})
FALSY_TOKENS: frozenset[str] = frozenset({"0", "false", "f", "no", "n", "nao", "não", ""})
