"""fileplugin: discover, load and watch plugin modules from the file system."""

__version__ = "0.1.0"
