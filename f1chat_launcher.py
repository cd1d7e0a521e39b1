"""Top-level script used as the PyInstaller entry point for the F1 chat app."""

from f1chat.main import main

if __name__ == "__main__":
    main()
