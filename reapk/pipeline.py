import contextlib
import os
import shutil
import signal
import sys

from reapk.errors import Interrupted, ReapkError, ResolutionError, StageError, ValidationError
from reapk.locate import locateExecutable
from reapk.output import infoPrint, verbosePrint, warningPrint
from reapk.payload import APKSIGNER_JAR, APKTOOL_JAR, DEBUG_CERT, DEBUG_KEY, loadPayload, missingAssets, writeAsset
from reapk.tools import openPath, runJavaJar
from reapk.workspace import removePath, workspace

STAGE_WRITE_UNPACK_ASSETS = "WriteUnpackAssets"
STAGE_UNPACK = "Unpack"
STAGE_AWAIT_OPERATOR = "AwaitOperator"
STAGE_REPACK = "Repack"
STAGE_WRITE_SIGN_ASSETS = "WriteSignAssets"
STAGE_SIGN = "Sign"
STAGE_PUBLISH = "Publish"

UNPACKED_DIR = "unpacked"
INTERMEDIATE_APK = "intermediate.apk"

class RunOptions:
    """Parameters of a single pipeline run.

    outputApk defaults to inputApk, so the signed result replaces the input.
    certPath and keyPath must be given together or not at all.
    """

    def __init__(self, inputApk, outputApk=None, certPath=None, keyPath=None, java="java", openFolder=True):
        self.inputApk = inputApk
        self.outputApk = outputApk if outputApk is not None else inputApk
        self.certPath = certPath
        self.keyPath = keyPath
        self.java = java
        self.openFolder = openFolder

####################
# Check the run can start. Nothing has been written to disk yet when this fails.
####################
def validateRun(options):
    if not os.path.exists(options.inputApk):
        raise ValidationError("Input APK file " + options.inputApk + " does not exist.")
    if not os.path.isfile(options.inputApk):
        raise ValidationError("Input APK path " + options.inputApk + " is not a file.")
    if (options.certPath is None) != (options.keyPath is None):
        raise ValidationError("--cert and --key must be supplied together.")

####################
# Find the Java runtime, failing before anything is spawned if it isn't there
####################
def resolveRuntime(command):
    runtime = locateExecutable(command)
    if runtime is None:
        raise ResolutionError(command)
    verbosePrint("Using " + command + " at " + runtime)
    return runtime

####################
# Label any failure inside the block with the stage it happened in
####################
@contextlib.contextmanager
def runStage(name):
    verbosePrint("Stage: " + name)
    try:
        yield
    except (Interrupted, StageError):
        raise
    except (ReapkError, OSError) as e:
        raise StageError(name, e) from e

####################
# Turn SIGTERM/SIGHUP into an exception for the duration of the run so the
# same cleanup as a failed stage runs. SIGINT already raises KeyboardInterrupt.
####################
@contextlib.contextmanager
def signalGuard():
    def handler(signum, frame):
        # Further signals are ignored so they can't cut the cleanup short
        for guarded in previous:
            signal.signal(guarded, signal.SIG_IGN)
        raise Interrupted(signum)

    previous = {}
    for name in ("SIGTERM", "SIGHUP"):
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        try:
            previous[signum] = signal.signal(signum, handler)
        except ValueError:
            verbosePrint("Not on the main thread, " + name + " will not clean up the workspace")
    try:
        yield
    finally:
        for signum, oldHandler in previous.items():
            signal.signal(signum, oldHandler)

####################
# Let the operator edit the unpacked APK, then wait for a line on stdin.
# End of input also continues.
####################
def awaitOperator(unpackedPath, openFolder=True):
    infoPrint("The unpacked APK is at " + unpackedPath + ", make your changes there.")
    if openFolder:
        openPath(unpackedPath)
    infoPrint("Press Enter to continue...")
    sys.stdin.readline()

####################
# Run the whole unpack -> edit -> repack -> sign -> publish pipeline.
# The workspace is removed on every exit path, including SIGTERM/SIGHUP/SIGINT.
####################
def runPipeline(options, payload=None, waitForOperator=awaitOperator, tempRoot=None):
    validateRun(options)
    if payload is None:
        payload = loadPayload()
    needed = [APKTOOL_JAR, APKSIGNER_JAR]
    if options.certPath is None:
        needed += [DEBUG_CERT, DEBUG_KEY]
    missing = missingAssets(payload, needed)
    if missing:
        warningPrint("Bundled " + ", ".join(missing) + " missing from this installation, the run will fail when it is needed. Run reapk-bundle to fetch it.")

    with signalGuard(), workspace(tempRoot) as tmppath:
        infoPrint("Temporary directory: " + tmppath)
        infoPrint("Input APK path: " + options.inputApk)
        infoPrint("Output APK path: " + options.outputApk)

        intermediateApk = os.path.join(tmppath, INTERMEDIATE_APK)
        unpackAndRepack(options, payload, tmppath, intermediateApk, waitForOperator)
        sign(options, payload, tmppath, intermediateApk)

        with runStage(STAGE_PUBLISH):
            infoPrint("Copying signed APK to " + options.outputApk + "...")
            shutil.copyfile(intermediateApk, options.outputApk)

    return options.outputApk

####################
# Decode the input into the workspace, wait for the operator, then build it back
# into the intermediate APK. apktool and the decoded tree are removed afterwards,
# whether or not the build succeeded.
####################
def unpackAndRepack(options, payload, tmppath, intermediateApk, waitForOperator):
    apktoolPath = os.path.join(tmppath, APKTOOL_JAR)
    unpackedPath = os.path.join(tmppath, UNPACKED_DIR)

    try:
        with runStage(STAGE_WRITE_UNPACK_ASSETS):
            writeAsset(payload, APKTOOL_JAR, apktoolPath)

        with runStage(STAGE_UNPACK):
            infoPrint("Unpacking input APK file to " + unpackedPath + "...")
            runJavaJar(resolveRuntime(options.java), apktoolPath, ["d", options.inputApk, "-o", unpackedPath])

        with runStage(STAGE_AWAIT_OPERATOR):
            waitForOperator(unpackedPath, options.openFolder)

        with runStage(STAGE_REPACK):
            infoPrint("Packing APK file to " + intermediateApk + "...")
            runJavaJar(resolveRuntime(options.java), apktoolPath, ["b", unpackedPath, "-o", intermediateApk])
    finally:
        removePath(unpackedPath)
        removePath(apktoolPath)

####################
# Sign the intermediate APK in place. Debug credentials are only written for
# whichever of cert/key the operator didn't supply, and only those are deleted.
####################
def sign(options, payload, tmppath, intermediateApk):
    signerPath = os.path.join(tmppath, APKSIGNER_JAR)
    certPath = options.certPath
    keyPath = options.keyPath
    materialized = [signerPath]

    try:
        with runStage(STAGE_WRITE_SIGN_ASSETS):
            writeAsset(payload, APKSIGNER_JAR, signerPath)
            if certPath is None:
                certPath = os.path.join(tmppath, DEBUG_CERT)
                materialized.append(certPath)
                writeAsset(payload, DEBUG_CERT, certPath)
            if keyPath is None:
                keyPath = os.path.join(tmppath, DEBUG_KEY)
                materialized.append(keyPath)
                writeAsset(payload, DEBUG_KEY, keyPath)

        with runStage(STAGE_SIGN):
            infoPrint("Signing APK file " + intermediateApk + "...")
            runJavaJar(resolveRuntime(options.java), signerPath, ["sign", "--key", keyPath, "--cert", certPath, intermediateApk])
    finally:
        for path in materialized:
            removePath(path)
