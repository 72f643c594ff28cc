"""Exclusion manifest generator for renaming .NET assemblies that use XAML."""

__version__ = "0.1.0"
