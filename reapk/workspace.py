import contextlib
import os
import shutil
import tempfile
import time
import uuid

from reapk.errors import WorkspaceError
from reapk.output import infoPrint, verbosePrint, warningPrint

WORKSPACE_PREFIX = "reapk-"

####################
# Generate a workspace name: creation time in milliseconds plus a random suffix
####################
def newWorkspaceName():
    return WORKSPACE_PREFIX + "%013x" % int(time.time() * 1000) + "-" + uuid.uuid4().hex

####################
# Create a new, empty, uniquely named directory under the temp root.
# A name collision is retried with a fresh name, any other failure is fatal.
####################
def acquireWorkspace(root=None):
    if root is None:
        root = tempfile.gettempdir()
    while True:
        path = os.path.join(root, newWorkspaceName())
        if os.path.lexists(path):
            verbosePrint("Workspace name collision at " + path + ", retrying")
            continue
        try:
            os.mkdir(path, 0o700)
        except FileExistsError:
            verbosePrint("Workspace name collision at " + path + ", retrying")
            continue
        except OSError as e:
            raise WorkspaceError("Failed to create workspace directory " + path + ": " + str(e)) from e
        return os.path.abspath(path)

####################
# Remove a file or directory tree, warning instead of failing so the rest of the cleanup still runs.
# Returns True if nothing is left at the path.
####################
def removePath(path):
    if not os.path.lexists(path):
        return True
    verbosePrint("Removing " + path)
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except OSError as e:
        warningPrint("Failed to remove " + path + ": " + str(e))
        return False
    return True

####################
# Recursively delete a workspace and everything in it
####################
def releaseWorkspace(path):
    infoPrint("Removing temporary directory " + path + "...")
    return removePath(path)

####################
# Acquire a workspace for the duration of a with-block and always release it
####################
@contextlib.contextmanager
def workspace(root=None):
    path = acquireWorkspace(root)
    try:
        yield path
    finally:
        releaseWorkspace(path)
