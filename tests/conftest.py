# Make threefish.py, skein.py and mac.py importable when pytest runs from a
# checkout that has not been installed.
import os
import sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
