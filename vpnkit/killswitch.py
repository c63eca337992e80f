"""Firewall kill switches that block outbound traffic outside the VPN interface."""

from __future__ import annotations

import os
import re
import subprocess
import sys
import tempfile
from typing import Optional, Sequence

from vpnkit.logging import LogLevel, log_message

IPTABLES = "iptables"
IP6TABLES = "ip6tables"
COMMENT = "KILLSWITCH"

RULE_NAME = "VPN Kill Switch"
RULE_GROUP = "VPN Protection"

_LINUX_INTERFACE = re.compile(r"[a-zA-Z0-9_]+")


class KillSwitchError(RuntimeError):
    """Raised when a firewall command fails."""


class _KillSwitchBase:
    """Shared lifecycle: disabling on exit and on destruction."""

    def __enter__(self):
        self.enable()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disable()

    def enable(self) -> None:  # pragma: no cover - overridden
        raise NotImplementedError

    def disable(self) -> None:  # pragma: no cover - overridden
        raise NotImplementedError

    def __del__(self) -> None:
        try:
            self.disable()
        except Exception:
            pass


class LinuxKillSwitch(_KillSwitchBase):
    """Kill switch built from iptables and ip6tables OUTPUT rules."""

    def __init__(self, interface: str) -> None:
        if not _LINUX_INTERFACE.fullmatch(interface):
            raise ValueError(f"Invalid interface name: {interface}")
        self.interface = interface
        self._original_rules: Optional[str] = None

    @property
    def enabled(self) -> bool:
        """True while the original rules are held for restoring."""
        return self._original_rules is not None

    def enable(self) -> None:
        """Save the current rules, then allow only loopback and the VPN interface."""
        if self._original_rules is not None:
            return

        self._original_rules = self._save_iptables()

        for binary in (IPTABLES, IP6TABLES):
            self._add_rule(binary, "ACCEPT", "lo")
            self._add_rule(binary, "ACCEPT", self.interface)
            self._add_rule(binary, "DROP")

        log_message(LogLevel.INFO, f"Kill Switch enabled for {self.interface}")

    def disable(self) -> None:
        """Restore the rules saved by enable; does nothing when not enabled."""
        original = getattr(self, "_original_rules", None)
        if original is None:
            return
        self._original_rules = None

        handle = tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", suffix=".rules", delete=False
        )
        try:
            with handle:
                handle.write(original)
            subprocess.run(
                ["iptables-restore", handle.name],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        finally:
            os.unlink(handle.name)

        log_message(LogLevel.INFO, "Kill Switch disabled")

    @staticmethod
    def _add_rule(binary: str, jump: str, output_interface: Optional[str] = None) -> None:
        args = [binary, "-A", "OUTPUT"]
        if output_interface is not None:
            args += ["-o", output_interface]
        args += ["-j", jump, "-m", "comment", "--comment", COMMENT]
        result = subprocess.run(
            args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL
        )
        if result.returncode != 0:
            raise KillSwitchError(f"Failed to execute {binary} command")

    @staticmethod
    def _save_iptables() -> str:
        result = subprocess.run(["iptables-save"], stdout=subprocess.PIPE)
        if result.returncode != 0:
            raise KillSwitchError("Failed to save iptables rules")
        try:
            return result.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise KillSwitchError("iptables-save produced invalid UTF-8") from exc


def _valid_windows_interface(name: str) -> bool:
    return bool(name) and all(
        ch.isalpha() or ch.isnumeric() or ch in "_ " for ch in name
    )


class WindowsKillSwitch(_KillSwitchBase):
    """Kill switch built from Windows Firewall rules managed through PowerShell."""

    def __init__(self, interface: str) -> None:
        if not _valid_windows_interface(interface):
            raise ValueError(f"Invalid interface name: {interface}")
        self.interface = interface
        self._original_state: Optional[str] = None

    @property
    def enabled(self) -> bool:
        """True while the original firewall state is held for restoring."""
        return self._original_state is not None

    def enable(self) -> None:
        """Save the rule group's state, then block all outbound traffic but the VPN's."""
        if self._original_state is not None:
            return

        self._original_state = self._get_firewall_state()
        self._create_firewall_rules()

        log_message(LogLevel.INFO, f"Windows Kill Switch enabled for {self.interface}")

    def disable(self) -> None:
        """Remove the rule group and replay the saved state; no-op when not enabled."""
        original = getattr(self, "_original_state", None)
        if original is None:
            return
        self._original_state = None
        self._restore_firewall_state(original)
        log_message(LogLevel.INFO, "Windows Kill Switch disabled")

    def _create_firewall_rules(self) -> None:
        self._execute_powershell(
            [
                "New-NetFirewallRule",
                "-DisplayName", RULE_NAME,
                "-Group", RULE_GROUP,
                "-Direction", "Outbound",
                "-Action", "Block",
                "-Enabled", "True",
                "-Profile", "Any",
                "-InterfaceType", "Any",
            ]
        )
        self._execute_powershell(
            [
                "New-NetFirewallRule",
                "-DisplayName", f"{RULE_NAME} Allow",
                "-Group", RULE_GROUP,
                "-Direction", "Outbound",
                "-Action", "Allow",
                "-Enabled", "True",
                "-Profile", "Any",
                "-InterfaceAlias", self.interface,
            ]
        )

    def _get_firewall_state(self) -> str:
        result = self._execute_powershell(
            [
                "Get-NetFirewallRule",
                "-Group", RULE_GROUP,
                "-ErrorAction", "SilentlyContinue",
            ]
        )
        try:
            return result.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise KillSwitchError("Firewall state is not valid UTF-8") from exc

    def _restore_firewall_state(self, original: str) -> None:
        self._execute_powershell(
            ["Remove-NetFirewallRule", "-Group", RULE_GROUP, "-Confirm:$false"]
        )
        if original:
            subprocess.run(
                ["powershell", "-Command", original],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )

    @staticmethod
    def _execute_powershell(args: Sequence[str]) -> subprocess.CompletedProcess:
        inner = "".join(f"{arg} " for arg in args)
        command = (
            f"Start-Process powershell -ArgumentList '-Command {inner}' -Verb RunAs -Wait"
        )
        result = subprocess.run(
            ["powershell", "-Command", command],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        if result.returncode != 0:
            error = (result.stderr or b"").decode("utf-8", errors="replace")
            raise KillSwitchError(f"PowerShell error: {error}")
        return result


def create_kill_switch(interface: str):
    """Return the kill switch for the running platform."""
    if sys.platform == "win32":
        return WindowsKillSwitch(interface)
    if sys.platform.startswith("linux"):
        return LinuxKillSwitch(interface)
    raise KillSwitchError(f"Unsupported platform: {sys.platform}")