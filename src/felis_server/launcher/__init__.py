"""
Launching the server entry point.

This package handles:
1. Resolving classes against an explicit, ordered classpath
2. Checking the entry class declares ``public static void main(String[])``
3. Passing the launch properties to the server and running it
"""

from .class_file import ClassFile, MethodInfo, parse_class_file
from .java_launcher import JavaEntryPoint, JavaLauncher, LaunchProperties, ProcessLaunchInfo
from .resolution_scope import ClassLocation, ResolutionScope

__all__ = [
    "ClassFile",
    "ClassLocation",
    "JavaEntryPoint",
    "JavaLauncher",
    "LaunchProperties",
    "MethodInfo",
    "ProcessLaunchInfo",
    "ResolutionScope",
    "parse_class_file",
]
