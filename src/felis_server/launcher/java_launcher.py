"""
Launches the server entry point in a fresh JVM scoped to the assembled classpath.
"""

import asyncio
import dataclasses
import logging
import os
import pathlib
from typing import Dict, List, Optional, Sequence

from felis_server.felis_config import BootstrapConfig
from felis_server.felis_exceptions import EntryPointNotFound, FilesystemError
from felis_server.felis_logger import FelisLogger
from felis_server.launcher.class_file import ClassFormatError, parse_class_file
from felis_server.launcher.resolution_scope import ClassLocation, ResolutionScope

ENTRY_POINT_METHOD = "main"
ENTRY_POINT_DESCRIPTOR = "([Ljava/lang/String;)V"


@dataclasses.dataclass
class LaunchProperties:
    """
    The configuration handed to the server's initialization logic.
    """

    classpath: str
    remap: bool = True
    launcher: str = "felis.launcher.minecraft.MinecraftLauncher"
    side: str = "SERVER"
    mods: str = "felis-mods"

    def to_system_properties(self) -> Dict[str, str]:
        return {
            "felis.minecraft.remap": "true" if self.remap else "false",
            "felis.launcher": self.launcher,
            "felis.side": self.side,
            "felis.mods": self.mods,
            "java.class.path": self.classpath,
        }

    def to_jvm_arguments(self) -> List[str]:
        """
        Render the properties as JVM arguments. ``java.class.path`` becomes
        ``-cp`` so the JVM's application loader is scoped to exactly it.
        """
        properties = self.to_system_properties()
        classpath = properties.pop("java.class.path")
        return [f"-D{key}={value}" for key, value in properties.items()] + ["-cp", classpath]


@dataclasses.dataclass
class ProcessLaunchInfo:
    """
    Everything needed to start the server process
    """

    cmd: List[str]
    env: Dict[str, str]
    cwd: str


class JavaEntryPoint:
    """
    A located ``public static void main(String[])`` that can be invoked.
    """

    def __init__(
        self,
        java_executable: str,
        location: ClassLocation,
        class_name: str,
        properties: LaunchProperties,
        cwd: pathlib.Path,
        logger: FelisLogger,
    ):
        self.java_executable = java_executable
        self.location = location
        self.class_name = class_name
        self.properties = properties
        self.cwd = cwd
        self.logger = logger

    def launch_info(self, args: Sequence[str] = ()) -> ProcessLaunchInfo:
        cmd = [self.java_executable, *self.properties.to_jvm_arguments(), self.class_name, *args]
        return ProcessLaunchInfo(cmd, dict(os.environ), str(self.cwd))

    async def invoke(self, args: Sequence[str] = ()) -> int:
        """
        Run the entry point and wait for it to finish.

        Returns:
            The exit status of the server process
        """
        info = self.launch_info(args)
        self.logger.log(f"Launching {self.class_name}: {' '.join(info.cmd)}", logging.INFO)
        try:
            process = await asyncio.create_subprocess_exec(*info.cmd, env=info.env, cwd=info.cwd)
        except OSError as e:
            raise FilesystemError(self.java_executable, f"cannot start java: {e}") from e
        return await process.wait()


class JavaLauncher:
    def __init__(self, config: BootstrapConfig, logger: Optional[FelisLogger] = None):
        self.config = config
        self.logger = logger or FelisLogger()

    def locate_entry_point(self, scope: ResolutionScope) -> ClassLocation:
        """
        Find the entry class in ``scope`` and check it declares the entry method.

        Raises:
            EntryPointNotFound: If the class is missing, unreadable, or lacks
                ``public static void main(String[])``
        """
        class_name = self.config.entry_point_class
        location = scope.resolve(class_name)
        if location is None:
            raise EntryPointNotFound(class_name, "class is not on the classpath")

        try:
            class_file = parse_class_file(location.read_bytes())
        except (OSError, KeyError, ClassFormatError) as e:
            raise EntryPointNotFound(class_name, f"cannot read {location.entry}: {e}") from e

        method = class_file.find_method(ENTRY_POINT_METHOD, ENTRY_POINT_DESCRIPTOR)
        if method is None or not (method.is_public and method.is_static):
            raise EntryPointNotFound(
                class_name,
                f"no public static {ENTRY_POINT_METHOD}{ENTRY_POINT_DESCRIPTOR} in {location.entry}",
            )
        return location

    def prepare(self, classpath: Sequence[pathlib.Path]) -> JavaEntryPoint:
        # Platform classes are resolved by the child JVM itself
        scope = ResolutionScope(classpath)
        location = self.locate_entry_point(scope)
        properties = LaunchProperties(classpath=scope.classpath_string(os.pathsep))
        return JavaEntryPoint(
            self.config.java_executable,
            location,
            self.config.entry_point_class,
            properties,
            self.config.root,
            self.logger,
        )

    async def launch(self, classpath: Sequence[pathlib.Path], args: Sequence[str] = ()) -> int:
        return await self.prepare(classpath).invoke(args)
