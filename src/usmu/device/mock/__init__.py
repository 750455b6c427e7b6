from .mock_usmu import MOCK_PORT, MockUSMUSerial

__all__ = ["MOCK_PORT", "MockUSMUSerial"]
