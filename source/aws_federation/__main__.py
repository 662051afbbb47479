# ABOUTME: Entry point for running the package as a module
# ABOUTME: Delegates to the cleo application

from .cli import main

if __name__ == "__main__":
    main()
