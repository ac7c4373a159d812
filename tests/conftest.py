"""
Pytest configuration and fixtures for plugin host tests.
"""

import shutil
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def no_sleep():
    async def _sleep(seconds):
        return None
    return _sleep


@pytest.fixture
def sample_javascript_code():
    """JavaScript with one violation per rule."""
    return '''var total = 0;
function add(items) {
  for (let i = 0; i < items.length; i++) total += items[i];
  if (total == 10) {
    console.log("ten");
  }
  return total === 10;
}
'''


@pytest.fixture
def sample_test_files():
    return [
        {
            "name": "math.test.js",
            "path": "/src/math.test.js",
            "content": """
describe('math', () => {
  it('adds numbers', () => {});
  it('subtracts numbers', () => {});
});
test("multiplies numbers", () => {});
""",
        },
        {
            "name": "empty.test.js",
            "path": "/src/empty.test.js",
            "content": "// nothing here\n",
        },
    ]
