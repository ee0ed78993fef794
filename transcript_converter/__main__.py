"""Package entry point for ``python -m transcript_converter``.

WHY: Users run the converter as ``python -m transcript_converter convert
input.json``. Python's ``-m`` flag looks for ``__main__.py`` inside the
package and executes it.

HOW: Delegates straight to the CLI's main() function.
"""

import sys

from transcript_converter.cli import main

if __name__ == "__main__":
    sys.exit(main())
