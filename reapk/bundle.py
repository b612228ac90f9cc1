"""reapk-bundle - fetch and generate the assets reapk ships with.

Run this before building a distribution. It fills reapk/assets/ with:

* apktool.jar, the latest apktool release from GitHub
* apksigner.jar, taken from an Android SDK build-tools archive
* debug_cert.crt / debug_key.pk8, a freshly generated self-signed debug
  certificate (DER) and its private key (unencrypted PKCS#8 DER)
"""

import argparse
import datetime
import os
import re
import sys
import tempfile
import zipfile

import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from packaging.version import InvalidVersion, Version
from progress.bar import Bar

from reapk import __version__
from reapk.errors import BundleError
from reapk.output import errorPrint, infoPrint, verbosePrint, warningPrint, setVerbose
from reapk.payload import APKSIGNER_JAR, APKTOOL_JAR, DEBUG_CERT, DEBUG_KEY

APKTOOL_RELEASE_URL = "https://api.github.com/repos/iBotPeaches/Apktool/releases/latest"
BUILD_TOOLS_URL = "https://dl.google.com/android/repository/build-tools_r{version}-{platform}.zip"
DEFAULT_BUILD_TOOLS = "34"
APKTOOL_VERSION_FILE = "apktool.version"
USER_AGENT = "reapk-bundle/" + __version__
CHUNK_SIZE = 64 * 1024
TIMEOUT = 60

DEBUG_SUBJECT = "reapk debug"
DEBUG_VALIDITY_DAYS = 365 * 30

DEFAULT_DEST = os.path.join(os.path.dirname(os.path.abspath(__file__)), "assets")

####################
# HTTP session with a User-Agent; the GitHub API rejects requests without one
####################
def newSession():
    session = requests.Session()
    session.headers["User-Agent"] = USER_AGENT
    return session

####################
# Parse "apktool_2.9.3.jar" into Version("2.9.3"), or None for other names
####################
def parseApktoolVersion(name):
    m = re.match(r"^apktool_(.+)\.jar$", name)
    if m is None:
        return None
    try:
        return Version(m.group(1))
    except InvalidVersion:
        return None

####################
# Ask GitHub for the latest apktool release and return (version, download url)
####################
def latestApktoolRelease(session):
    try:
        resp = session.get(APKTOOL_RELEASE_URL, headers={"Accept": "application/vnd.github+json"}, timeout=TIMEOUT)
        resp.raise_for_status()
        release = resp.json()
    except (requests.RequestException, ValueError) as e:
        raise BundleError("Failed to fetch the latest apktool release metadata: " + str(e)) from e

    for asset in release.get("assets", []):
        version = parseApktoolVersion(asset.get("name", ""))
        if version is not None and asset.get("browser_download_url"):
            return version, asset["browser_download_url"]
    raise BundleError("Could not find an apktool jar in the latest release.")

####################
# The apktool version recorded next to the bundled jar, if any
####################
def bundledApktoolVersion(dest):
    if not os.path.isfile(os.path.join(dest, APKTOOL_JAR)):
        return None
    versionPath = os.path.join(dest, APKTOOL_VERSION_FILE)
    if not os.path.isfile(versionPath):
        return None
    with open(versionPath, "r") as fh:
        text = fh.read().strip()
    try:
        return Version(text)
    except InvalidVersion:
        warningPrint("Ignoring unreadable apktool version '" + text + "' in " + versionPath)
        return None

####################
# Stream a download to disk with a progress bar. The file only appears at its
# final path once the download is complete.
####################
def downloadFile(session, url, path, label):
    partial = path + ".part"
    try:
        with session.get(url, stream=True, timeout=TIMEOUT) as resp:
            resp.raise_for_status()
            total = int(resp.headers.get("Content-Length") or 0)
            bar = Bar(label, max=max(1, -(-total // CHUNK_SIZE)))
            with open(partial, "wb") as fh:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    fh.write(chunk)
                    bar.next()
            bar.finish()
    except requests.RequestException as e:
        if os.path.exists(partial):
            os.remove(partial)
        raise BundleError("Failed to download " + url + ": " + str(e)) from e
    os.replace(partial, path)
    return path

####################
# Download the latest apktool unless an equal or newer one is already bundled.
# Without network access an already bundled jar is kept as it is.
####################
def fetchApktool(dest, force=False, session=None):
    session = session or newSession()
    bundled = os.path.isfile(os.path.join(dest, APKTOOL_JAR))
    current = bundledApktoolVersion(dest)
    try:
        version, url = latestApktoolRelease(session)
    except BundleError as e:
        if force or not bundled:
            raise
        warningPrint(str(e))
        warningPrint("Keeping the bundled apktool " + (str(current) if current is not None else "(unknown version)") + ".")
        return current

    if not force and current is not None and current >= version:
        infoPrint("apktool " + str(current) + " is already bundled, skipping download.")
        return current

    infoPrint("Downloading apktool " + str(version) + " from " + url)
    downloadFile(session, url, os.path.join(dest, APKTOOL_JAR), "[+] apktool " + str(version))
    with open(os.path.join(dest, APKTOOL_VERSION_FILE), "w") as fh:
        fh.write(str(version) + "\n")
    return version

####################
# Find lib/apksigner.jar inside a build-tools archive
####################
def findApksignerMember(names):
    for name in names:
        if name == "lib/" + APKSIGNER_JAR or name.endswith("/lib/" + APKSIGNER_JAR):
            return name
    return None

####################
# Download an Android SDK build-tools archive and extract apksigner.jar from it
####################
def fetchApksigner(dest, buildTools=DEFAULT_BUILD_TOOLS, force=False, session=None):
    target = os.path.join(dest, APKSIGNER_JAR)
    if os.path.isfile(target) and not force:
        infoPrint(APKSIGNER_JAR + " is already bundled, skipping download.")
        return target

    session = session or newSession()
    url = BUILD_TOOLS_URL.format(version=buildTools, platform="linux")
    infoPrint("Downloading build-tools " + buildTools + " from " + url)
    with tempfile.TemporaryDirectory(prefix="reapk-bundle-") as tmppath:
        archive = downloadFile(session, url, os.path.join(tmppath, "build-tools.zip"), "[+] build-tools " + buildTools)
        try:
            with zipfile.ZipFile(archive) as zf:
                member = findApksignerMember(zf.namelist())
                if member is None:
                    raise BundleError("No " + APKSIGNER_JAR + " found in " + url)
                verbosePrint("Extracting " + member)
                with zf.open(member) as src, open(target, "wb") as dst:
                    dst.write(src.read())
        except zipfile.BadZipFile as e:
            raise BundleError("Downloaded build-tools archive is not a zip file: " + str(e)) from e
    return target

####################
# Generate a self-signed debug certificate (DER) and private key (PKCS#8 DER),
# the formats apksigner's --cert and --key expect
####################
def generateDebugCredentials(certPath, keyPath, force=False, keySize=2048):
    if not force and os.path.isfile(certPath) and os.path.isfile(keyPath):
        infoPrint("Debug certificate and key are already bundled, keeping them.")
        return False

    infoPrint("Generating debug certificate and key.")
    key = rsa.generate_private_key(public_exponent=65537, key_size=keySize)
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, DEBUG_SUBJECT)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=DEBUG_VALIDITY_DAYS))
        .sign(key, hashes.SHA256())
    )

    with open(certPath, "wb") as fh:
        fh.write(cert.public_bytes(serialization.Encoding.DER))
    with open(keyPath, "wb") as fh:
        fh.write(key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ))
    return True

####################
# Grab command line parameters
####################
def getArgs(argv=None):
    parser = argparse.ArgumentParser(
        prog="reapk-bundle",
        description="reapk-bundle - Fetch apktool and apksigner and generate debug signing credentials for reapk.",
    )
    parser.add_argument("--dest", default=DEFAULT_DEST, help="Directory to write the assets to (default: the installed reapk/assets).")
    parser.add_argument("--force", help="Re-download and regenerate assets that are already present.", action="store_true")
    parser.add_argument("--build-tools", default=DEFAULT_BUILD_TOOLS, help="Android SDK build-tools revision to take apksigner from (default: " + DEFAULT_BUILD_TOOLS + ").")
    parser.add_argument("--skip-apksigner", help="Don't download apksigner.jar.", action="store_true")
    parser.add_argument("-v", "--verbose", help="Enable verbose output.", action="store_true")
    return parser.parse_args(argv)

####################
# Main()
####################
def main(argv=None):
    args = getArgs(argv)
    setVerbose(args.verbose)
    os.makedirs(args.dest, exist_ok=True)

    session = newSession()
    try:
        fetchApktool(args.dest, force=args.force, session=session)
        if not args.skip_apksigner:
            fetchApksigner(args.dest, buildTools=args.build_tools, force=args.force, session=session)
        generateDebugCredentials(os.path.join(args.dest, DEBUG_CERT), os.path.join(args.dest, DEBUG_KEY), force=args.force)
    except (BundleError, OSError) as e:
        errorPrint(str(e))
        return 1

    infoPrint("Assets written to " + args.dest)
    return 0

if __name__ == "__main__":
    sys.exit(main())
