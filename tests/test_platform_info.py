import platform

import pytest

from respot.platform_info import (
    CpuFamily,
    Os,
    Platform,
    get_cpu_family,
    get_os,
    get_platform,
    get_platform_specific_data,
)


@pytest.mark.parametrize(
    "system, expected",
    [
        ("Linux", Os.LINUX),
        ("Darwin", Os.OSX),
        ("Windows", Os.WINDOWS),
        ("win32", Os.WINDOWS),
        ("FreeBSD", Os.FREEBSD),
        ("iOS", Os.IPHONE),
        ("Android", Os.ANDROID),
        ("Plan9", Os.UNKNOWN),
    ],
)
def test_get_os(system, expected):
    assert get_os(system) is expected


@pytest.mark.parametrize(
    "machine, expected",
    [
        ("x86_64", CpuFamily.X86_64),
        ("AMD64", CpuFamily.X86_64),
        ("i686", CpuFamily.X86),
        ("aarch64", CpuFamily.ARM),
        ("armv7l", CpuFamily.ARM),
        ("mips64", CpuFamily.MIPS),
        ("ppc64", CpuFamily.PPC_64),
        ("sparc", CpuFamily.UNKNOWN),
    ],
)
def test_get_cpu_family(machine, expected):
    assert get_cpu_family(machine) is expected


@pytest.mark.parametrize(
    "system, machine, expected",
    [
        ("Linux", "x86_64", Platform.LINUX_X86_64),
        ("Linux", "aarch64", Platform.LINUX_ARM),
        ("Linux", "mips", Platform.LINUX_MIPS),
        ("Darwin", "x86_64", Platform.OSX_X86_64),
        ("Darwin", "arm64", Platform.GENERIC_PARTNER),
        ("Windows", "ARM64", Platform.WINDOWS_CE_ARM),
        ("Windows", "i386", Platform.WIN32_X86),
        ("iOS", "arm64", Platform.IPHONE_ARM64),
        ("Android", "x86_64", Platform.ANDROID_ARM),
        ("Emscripten", "wasm32", Platform.WEBPLAYER),
        ("Plan9", "x86_64", Platform.GENERIC_PARTNER),
    ],
)
def test_get_platform(system, machine, expected):
    assert get_platform(system, machine) is expected


def test_platform_specific_data():
    assert get_platform_specific_data("Linux") == {"desktop_linux": {}}
    assert get_platform_specific_data("Darwin") == {"desktop_macos": {}}
    assert get_platform_specific_data("FreeBSD") is None


def test_defaults_follow_running_system():
    assert get_os() is get_os(platform.system())
    assert get_cpu_family() is get_cpu_family(platform.machine())
    assert get_platform() is get_platform(platform.system(), platform.machine())