import sys
from termcolor import colored

VERBOSE = False

####################
# Enable or disable verbose output
####################
def setVerbose(enabled):
    global VERBOSE
    VERBOSE = bool(enabled)

####################
# Colour only when stderr is a terminal, so redirected output stays plain for scripts
####################
def _emit(prefix, msg, color=None):
    stream = sys.stderr
    for line in str(msg).split("\n"):
        text = prefix + line
        if color is not None:
            text = colored(text, color, no_color=not stream.isatty())
        print(text, file=stream, flush=True)

####################
# Informational print
####################
def infoPrint(msg):
    _emit("I: ", msg)

####################
# Verbose print, only shown with --verbose
####################
def verbosePrint(msg):
    if VERBOSE:
        _emit("I:     ", msg, "light_grey")

####################
# Warning print
####################
def warningPrint(msg):
    _emit("W: ", msg, "yellow")

####################
# Error print
####################
def errorPrint(msg):
    _emit("E: ", msg, "red")
