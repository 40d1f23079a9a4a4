class StoreQueryFailed(Exception):
    """The backing store could not execute a query."""


class ValidationFailed(ValueError):
    pass


class NotFound(KeyError):
    def __str__(self) -> str:
        # KeyError quotes its argument
        return str(self.args[0]) if self.args else ""
