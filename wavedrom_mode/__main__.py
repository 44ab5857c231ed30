"""Package entry point for ``python -m wavedrom_mode``.

WHY: Lets users run the tool without the console script installed,
e.g. ``python -m wavedrom_mode watch diagrams/``.

HOW: Delegates straight to the CLI's main().
"""

from wavedrom_mode.cli import main

if __name__ == "__main__":
    main()
