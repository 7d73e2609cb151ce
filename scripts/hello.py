"""
Example script: GET /hello/world

The argument arrives as sys.argv[1]; whatever is printed becomes the
HTTP response body.
"""

import subprocess
import sys
import time

argument = sys.argv[1] if len(sys.argv) > 1 and sys.argv[1] else "stranger"

if sys.platform == "darwin":
    subprocess.run(
        [
            "osascript",
            "-e",
            f'display notification "Hello, {argument}!" with title "Milan"',
        ],
        check=False,
    )

print(f"[{time.strftime('%Y-%m-%d %H:%M:%S')}] hello.py executed with: {argument}")
