
class ShapeMismatchError(ValueError):
    """Raised when a forward input does not match a layer's input count"""
    def __init__(self, expected, got, where="layer"):
        super().__init__(f"{where}: expected input of length {expected}, got {got}")
        self.expected = expected
        self.got = got

class SizeMismatchError(ValueError):
    """Raised when loss outputs and desired values differ in length"""
    def __init__(self, outputs, desired):
        super().__init__(f"outputs size ({outputs}) is not equal to desired size ({desired})")
        self.outputs = outputs
        self.desired = desired

class ParameterCountMismatchError(ValueError):
    """Raised when a flattened parameter vector does not fit the network"""
    def __init__(self, expected, got):
        super().__init__(
            f"The network has {expected} parameters but the vector holds {got}")
        self.expected = expected
        self.got = got

class SequencingError(RuntimeError):
    """Raised when forward, backward and update are called out of order"""
    def __init__(self, message="forward/backward/update called out of order"):
        super().__init__(message)

class NaNException(Exception):
    """Raised when a NaN is encountered during learning"""
    def __init__(self, message="NaN value detected in training"):
        super().__init__(message)

class InvalidConfigError(Exception):
    """Raised when optimizer or network configuration validation fails"""
    def __init__(self, message="Invalid configuration"):
        super().__init__(message)
        self.message = message

    def __str__(self):
        return f'InvalidConfigError: {self.message}'
