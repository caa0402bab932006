from __future__ import annotations


def pytest_addoption(parser):
    parser.addoption(
        "--run-network",
        action="store_true",
        default=False,
        help="Run doc snippets that fetch benchmark data from GitHub or HF Hub.",
    )
