"""Package entry point for ``python -m reel_composer``.

WHY: Users run the scripts as ``python -m reel_composer queue`` or
``python -m reel_composer plan composition.json``. Python's ``-m`` flag
looks for ``__main__.py`` inside the package and executes it.

HOW: Delegates straight to the CLI's main() function.
"""

from reel_composer.cli import main

if __name__ == "__main__":
    main()
