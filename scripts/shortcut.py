"""
Run a macOS Shortcut.

    GET /shortcut/Name
    GET /shortcut/Name/input%20text

sys.argv[1] is "Name" or "Name/input text"; the input, if any, is fed to
the shortcut on stdin.
"""

import subprocess
import sys

arg = sys.argv[1] if len(sys.argv) > 1 else ""
name, _, shortcut_input = arg.partition("/")

if not name:
    print("No shortcut name provided", file=sys.stderr)
    sys.exit(1)

cmd = ["shortcuts", "run", name]
if shortcut_input:
    cmd += ["--input-path", "-"]

result = subprocess.run(cmd, input=shortcut_input or None, capture_output=True, text=True)
sys.stdout.write(result.stdout)
sys.stderr.write(result.stderr)
sys.exit(result.returncode)
