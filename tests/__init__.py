# "tests" is a package so test modules can import tests.helpers.
# Keep the project root on sys.path when pytest runs from another CWD.
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
