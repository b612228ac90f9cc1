import argparse
import os

from reapk import __version__
from reapk.errors import Interrupted, ReapkError
from reapk.output import errorPrint, infoPrint, setVerbose
from reapk.pipeline import RunOptions, runPipeline

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130

####################
# Main()
####################
def main(argv=None):
    args = getArgs(argv)
    setVerbose(args.verbose)

    options = RunOptions(
        args.input_apk,
        args.output_apk,
        certPath=args.cert,
        keyPath=args.key,
        java=args.java,
        openFolder=not args.no_open,
    )

    try:
        outputApk = runPipeline(options)
    except KeyboardInterrupt:
        errorPrint("Interrupted, temporary files have been removed.")
        return EXIT_INTERRUPTED
    except Interrupted as e:
        errorPrint(str(e) + ", temporary files have been removed.")
        return EXIT_INTERRUPTED
    except ReapkError as e:
        errorPrint(str(e))
        return EXIT_FAILURE

    infoPrint("Done, signed APK written to " + outputApk)
    return 0

####################
# Grab command line parameters
####################
def getArgs(argv=None):
    parser = argparse.ArgumentParser(
        prog="reapk",
        description="reapk - Unpack an APK, pause while you edit it, then repack and re-sign it.",
    )
    parser.add_argument("input_apk", help="The APK file to be processed.")
    parser.add_argument("output_apk", nargs="?", default=None, help="The APK file to be generated (defaults to overwriting the input APK).")
    parser.add_argument("--cert", help="Signing certificate to use instead of the bundled debug certificate. Requires --key.")
    parser.add_argument("--key", help="PKCS#8 DER private key to use instead of the bundled debug key. Requires --cert.")
    parser.add_argument("--java", default=os.environ.get("REAPK_JAVA", "java"), help="Java runtime command or path (default: $REAPK_JAVA or 'java').")
    parser.add_argument("--no-open", help="Don't open the unpacked APK in the file manager.", action="store_true")
    parser.add_argument("-v", "--verbose", help="Enable verbose output.", action="store_true")
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    return parser.parse_args(argv)
