from fileshare.config import VERSION

__version__ = VERSION
