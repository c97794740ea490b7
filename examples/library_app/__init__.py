from .demo import (  # noqa: F401
    bootstrap_session,
    collect_unique,
    reading_list,
    run_demo,
    seed_sample_data,
)

__all__ = [
    "bootstrap_session",
    "seed_sample_data",
    "collect_unique",
    "reading_list",
    "run_demo",
]
