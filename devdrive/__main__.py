# devdrive/__main__.py

from devdrive.cli import main

if __name__ == "__main__":
    main()
