class BootstrapError(Exception):
    '''A failure that aborts the whole bootstrap run (exit status 1)'''
    exit_code = 1


class PreconditionError(BootstrapError):
    '''Required tooling or file is missing'''

    def __init__(self, message, hint=None):
        self.hint = hint
        super().__init__(message)


class ReadinessTimeout(BootstrapError):
    '''A readiness signal was not observed before its deadline'''

    def __init__(self, what, timeout):
        self.what = what
        self.timeout = timeout
        super().__init__(f"{what} not observed within {timeout} seconds")
