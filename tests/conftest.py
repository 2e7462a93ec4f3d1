"""
Pytest configuration and shared fixtures for planflow tests.

Provides raw plan document fixtures built with plan_helpers.
"""

import sys
from pathlib import Path

import pytest

# Add apps/backend to sys.path so `import planflow` works without installing
backend_dir = Path(__file__).parent.parent / "apps" / "backend"
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


from plan_helpers import make_plan, make_step  # noqa: E402


@pytest.fixture
def diamond_document():
    """A, B depends on A, C depends on A and B."""
    return make_plan(
        [
            make_step("A"),
            make_step("B", depends_on=["A"]),
            make_step("C", depends_on=["A", "B"]),
        ]
    )


@pytest.fixture
def sample_document():
    """A realistic plan with actions, validation criteria and mixed statuses."""
    return make_plan(
        [
            make_step(
                "setup",
                state="done",
                kind="run_command",
                title="Set up environment",
                actions=[
                    {
                        "type": "run_command",
                        "description": "Install packages",
                        "command": "npm install",
                    }
                ],
            ),
            make_step(
                "model",
                depends_on=["setup"],
                state="done",
                kind="create_file",
                actions=[
                    {
                        "type": "create_file",
                        "description": "User model",
                        "filePath": "src/models/user.ts",
                    }
                ],
            ),
            make_step(
                "form",
                depends_on=["model"],
                state="in-progress",
                kind="edit_file",
            ),
            make_step(
                "tests",
                depends_on=["form"],
                kind="test",
                validation={
                    "criteria": ["Login succeeds with valid credentials"],
                    "automatedTests": ["tests/login.spec.ts"],
                },
                actions=[
                    {
                        "type": "test",
                        "description": "Run login tests",
                        "testCommand": "npm test",
                    }
                ],
            ),
        ]
    )

