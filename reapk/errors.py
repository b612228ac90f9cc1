####################
# Exceptions raised by the pipeline and its collaborators. cli.main() is the
# only place that turns these into "E:" lines and an exit status.
####################

class ReapkError(Exception):
    pass

class ValidationError(ReapkError):
    pass

class WorkspaceError(ReapkError):
    pass

class AssetError(ReapkError):
    pass

class PayloadError(ReapkError):
    pass

class ResolutionError(ReapkError):
    def __init__(self, command):
        self.command = command
        super().__init__("Could not locate the '" + command + "' executable, ensure it is installed and on the PATH")

class ToolSpawnError(ReapkError):
    def __init__(self, command, reason):
        self.command = list(command)
        self.reason = reason
        super().__init__(f"Failed to start {' '.join(self.command)}: {reason}")

class ToolError(ReapkError):
    def __init__(self, command, exitcode):
        self.command = list(command)
        self.exitcode = exitcode
        super().__init__(f"{' '.join(self.command)} exited with code {exitcode}")

class StageError(ReapkError):
    def __init__(self, stage, cause):
        self.stage = stage
        self.cause = cause
        super().__init__(stage + " failed: " + str(cause))

    @property
    def exitcode(self):
        return getattr(self.cause, "exitcode", None)

class Interrupted(ReapkError):
    def __init__(self, signum):
        self.signum = signum
        super().__init__("Interrupted by signal " + str(signum))

class BundleError(ReapkError):
    pass
