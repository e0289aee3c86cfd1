"""
Startup errors.

The only fatal error class of the service: the listening socket could not
be set up. Everything that goes wrong later is answered with an HTTP
error response instead.
"""


class StartupError(OSError):
    """
    Raised when the dual-stack listening socket cannot be set up.

    Carries the step that failed so the entry point can say exactly what
    went wrong:

        "create"  - socket() or a socket option failed
        "bind"    - address in use, privileged port, no such address
        "listen"  - listen() failed

    The original OSError is chained as __cause__ and its errno is kept.
    """

    STEPS = ("create", "bind", "listen")

    def __init__(self, step: str, address: str, cause: BaseException):
        if step not in self.STEPS:
            raise ValueError(f"Unknown startup step: {step}")

        errno = getattr(cause, "errno", None)
        super().__init__(errno, f"failed to {step} dual-stack socket on {address}: {cause}")
        self.step = step
        self.address = address
        self.cause = cause

    def __str__(self) -> str:
        return self.strerror
