import os
import subprocess
import sys

from reapk.errors import ToolError, ToolSpawnError
from reapk.output import verbosePrint, warningPrint

####################
# Run "<runtime> -jar <archive> <args...>" with the tool's output going straight
# to our stdout/stderr, and wait for it to finish.
# Raises ToolSpawnError if the process can't be started, ToolError on a non-zero exit.
####################
def runJavaJar(runtime, archive, args):
    cmd = [runtime, "-jar", archive]
    cmd.extend(args)

    if not os.path.isfile(archive):
        raise ToolSpawnError(cmd, "archive " + archive + " does not exist")

    verbosePrint("Running: " + " ".join(cmd))
    try:
        proc = subprocess.run(cmd, stdout=None, stderr=None)
    except OSError as e:
        raise ToolSpawnError(cmd, e.strerror or str(e)) from e

    # A child killed by a signal reports a negative return code on POSIX
    if proc.returncode != 0:
        raise ToolError(cmd, proc.returncode)
    return proc

####################
# The platform's "open this folder" command
####################
def fileManagerCommand(path):
    if sys.platform == "win32":
        return ["explorer", path]
    if sys.platform == "darwin":
        return ["open", path]
    return ["xdg-open", path]

####################
# Open a directory in the host file manager. Best effort: failures only warn.
####################
def openPath(path):
    cmd = fileManagerCommand(path)
    try:
        subprocess.Popen(cmd, stdin=subprocess.DEVNULL, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as e:
        warningPrint("Could not open " + path + " with " + cmd[0] + ": " + (e.strerror or str(e)))
        return False
    return True
