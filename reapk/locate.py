import os
import sys

APP_PATHS_KEY = r"SOFTWARE\Microsoft\Windows\CurrentVersion\App Paths"
EXECUTABLE_SUFFIX = ".exe"

####################
# Locate an executable by checking the literal path, then the PATH, then
# (on Windows) the App Paths registry. Returns None if nothing matches.
####################
def locateExecutable(command):
    # A direct path to a file wins outright. Made absolute so the spawn runs
    # this file rather than searching PATH for a bare name again.
    if os.path.isfile(command):
        return os.path.abspath(command)

    candidates = candidateNames(command)

    for directory in searchPath():
        for candidate in candidates:
            fullpath = os.path.join(directory, candidate)
            if os.path.isfile(fullpath):
                return fullpath

    if sys.platform == "win32":
        return lookupAppPaths(candidates)

    return None

####################
# The literal name, plus the name with an executable suffix if it has no extension
####################
def candidateNames(command):
    if os.path.splitext(command)[1] == "":
        return [command, command + EXECUTABLE_SUFFIX]
    return [command]

####################
# Directories listed in PATH, in order
####################
def searchPath():
    return [d for d in os.environ.get("PATH", "").split(os.pathsep) if d]

####################
# Consult HKLM\...\App Paths, whose default value holds the full executable path
####################
def lookupAppPaths(candidates):
    import winreg

    try:
        appPaths = winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, APP_PATHS_KEY)
    except OSError:
        return None
    with appPaths:
        for candidate in candidates:
            try:
                with winreg.OpenKey(appPaths, candidate) as subkey:
                    value = winreg.QueryValueEx(subkey, "")[0]
            except OSError:
                continue
            value = os.path.expandvars(str(value).strip('"'))
            if os.path.isfile(value):
                return value
    return None
