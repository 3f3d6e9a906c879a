import typing as t
from contextlib import contextmanager
from enum import Enum

Details = t.Dict[str, t.List[str]]


class ErrorCode(str, Enum):
    INVALID = 'INVALID'
    NOTFOUND = 'NOTFOUND'
    EXECFAIL = 'EXECFAIL'
    CONNFAIL = 'CONNFAIL'


class TreeError(Exception):
    code: ErrorCode = ErrorCode.EXECFAIL

    def __init__(self, message: str, details: t.Optional[Details] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def cause(self) -> t.Optional[BaseException]:
        return self.__cause__

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self.code.value}: {self.message})'


class InvalidError(TreeError):
    code = ErrorCode.INVALID


class NotFoundError(TreeError):
    code = ErrorCode.NOTFOUND


class ExecFailError(TreeError):
    code = ErrorCode.EXECFAIL


class ConnFailError(TreeError):
    code = ErrorCode.CONNFAIL


@contextmanager
def failing_as(message: str) -> t.Iterator[None]:
    """Re-raises store failures as ExecFailError with the original as cause.

    Connection failures pass through unchanged.
    """
    try:
        yield
    except ConnFailError:
        raise
    except TreeError as err:
        raise ExecFailError(message) from err
