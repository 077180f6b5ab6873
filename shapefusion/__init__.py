"""Read, edit and write Marathon Sounds files and render Shapes bitmap pixels."""

__version__ = "0.1.0"