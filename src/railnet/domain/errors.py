class EmptyNetworkError(ValueError):
    """No usable line geometry to build a network from."""


class BuildCancelled(RuntimeError):
    pass


class RouterNotInitialized(RuntimeError):
    pass
