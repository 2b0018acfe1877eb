import shlex

class CarabinerError(Exception):
    pass

class ExecutionError(CarabinerError):
    def __init__(self, cmd: list[str], stderr: str):
        self.cmd = cmd
        self.stderr = stderr
        super().__init__(f"Command failed: {shlex.join(cmd)}\nError: {stderr}")

class ConfigurationError(CarabinerError):
    pass
