"""Identify the running operating system and CPU the way the service expects."""

from __future__ import annotations

import enum
import platform


class Os(enum.Enum):
    ANDROID = "OS_ANDROID"
    OSX = "OS_OSX"
    FREEBSD = "OS_FREEBSD"
    IPHONE = "OS_IPHONE"
    LINUX = "OS_LINUX"
    WINDOWS = "OS_WINDOWS"
    UNKNOWN = "OS_UNKNOWN"


class CpuFamily(enum.Enum):
    X86 = "CPU_X86"
    X86_64 = "CPU_X86_64"
    ARM = "CPU_ARM"
    MIPS = "CPU_MIPS"
    PPC_64 = "CPU_PPC_64"
    UNKNOWN = "CPU_UNKNOWN"


class Platform(enum.Enum):
    ANDROID_ARM = "PLATFORM_ANDROID_ARM"
    OSX_X86 = "PLATFORM_OSX_X86"
    OSX_X86_64 = "PLATFORM_OSX_X86_64"
    OSX_PPC = "PLATFORM_OSX_PPC"
    FREEBSD_X86 = "PLATFORM_FREEBSD_X86"
    FREEBSD_X86_64 = "PLATFORM_FREEBSD_X86_64"
    IPHONE_ARM = "PLATFORM_IPHONE_ARM"
    IPHONE_ARM64 = "PLATFORM_IPHONE_ARM64"
    LINUX_X86 = "PLATFORM_LINUX_X86"
    LINUX_X86_64 = "PLATFORM_LINUX_X86_64"
    LINUX_MIPS = "PLATFORM_LINUX_MIPS"
    LINUX_ARM = "PLATFORM_LINUX_ARM"
    WIN32_X86 = "PLATFORM_WIN32_X86"
    WIN32_X86_64 = "PLATFORM_WIN32_X86_64"
    WINDOWS_CE_ARM = "PLATFORM_WINDOWS_CE_ARM"
    WEBPLAYER = "PLATFORM_WEBPLAYER"
    GENERIC_PARTNER = "PLATFORM_GENERIC_PARTNER"


_SYSTEM_ALIASES = {"win32": "windows", "emscripten": "js"}

_MACHINE_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "i386": "386",
    "i486": "386",
    "i586": "386",
    "i686": "386",
    "x86": "386",
    "aarch64": "arm64",
    "arm64": "arm64",
    "mips": "mips",
    "mips64": "mips64",
    "ppc64": "ppc64",
}

_OS_BY_SYSTEM = {
    "android": Os.ANDROID,
    "darwin": Os.OSX,
    "freebsd": Os.FREEBSD,
    "ios": Os.IPHONE,
    "linux": Os.LINUX,
    "windows": Os.WINDOWS,
}

_CPU_BY_MACHINE = {
    "386": CpuFamily.X86,
    "amd64": CpuFamily.X86_64,
    "arm": CpuFamily.ARM,
    "arm64": CpuFamily.ARM,
    "mips": CpuFamily.MIPS,
    "mips64": CpuFamily.MIPS,
    "ppc64": CpuFamily.PPC_64,
}

_PLATFORM_BY_PAIR = {
    ("darwin", "386"): Platform.OSX_X86,
    ("darwin", "amd64"): Platform.OSX_X86_64,
    ("darwin", "ppc64"): Platform.OSX_PPC,
    ("freebsd", "386"): Platform.FREEBSD_X86,
    ("freebsd", "amd64"): Platform.FREEBSD_X86_64,
    ("ios", "arm"): Platform.IPHONE_ARM,
    ("ios", "arm64"): Platform.IPHONE_ARM64,
    ("linux", "386"): Platform.LINUX_X86,
    ("linux", "amd64"): Platform.LINUX_X86_64,
    ("linux", "mips"): Platform.LINUX_MIPS,
    ("linux", "mips64"): Platform.LINUX_MIPS,
    ("linux", "arm"): Platform.LINUX_ARM,
    ("linux", "arm64"): Platform.LINUX_ARM,
    ("windows", "386"): Platform.WIN32_X86,
    ("windows", "amd64"): Platform.WIN32_X86_64,
    ("windows", "arm"): Platform.WINDOWS_CE_ARM,
    ("windows", "arm64"): Platform.WINDOWS_CE_ARM,
}

_SPECIFIC_DATA_KEY = {
    "android": "android",
    "darwin": "desktop_macos",
    "ios": "ios",
    "linux": "desktop_linux",
    "windows": "desktop_windows",
}


def _system(system: str | None) -> str:
    name = (platform.system() if system is None else system).lower()
    return _SYSTEM_ALIASES.get(name, name)


def _machine(machine: str | None) -> str:
    name = (platform.machine() if machine is None else machine).lower()
    if name in _MACHINE_ALIASES:
        return _MACHINE_ALIASES[name]
    if name.startswith("arm"):
        return "arm"
    return name


def get_os(system: str | None = None) -> Os:
    """Return the OS for ``system`` (defaults to the running one)."""
    return _OS_BY_SYSTEM.get(_system(system), Os.UNKNOWN)


def get_cpu_family(machine: str | None = None) -> CpuFamily:
    """Return the CPU family for ``machine`` (defaults to the running one)."""
    return _CPU_BY_MACHINE.get(_machine(machine), CpuFamily.UNKNOWN)


def get_platform(system: str | None = None, machine: str | None = None) -> Platform:
    """Return the combined OS/CPU platform identifier."""
    name = _system(system)
    if name == "android":
        return Platform.ANDROID_ARM
    if name == "js":
        return Platform.WEBPLAYER
    return _PLATFORM_BY_PAIR.get((name, _machine(machine)), Platform.GENERIC_PARTNER)


def get_platform_specific_data(system: str | None = None) -> dict[str, dict] | None:
    """Return the platform-specific client data block, or None if unknown."""
    key = _SPECIFIC_DATA_KEY.get(_system(system))
    if key is None:
        return None
    return {key: {}}