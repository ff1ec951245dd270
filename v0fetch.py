#!/usr/bin/env python3
from v0fetch.cli import main

if __name__ == "__main__":
    main()
