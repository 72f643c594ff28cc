"""Shared fixtures for building project trees on disk."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable, Iterable, Optional

import pytest


MSBUILD_NAMESPACE = "http://schemas.microsoft.com/developer/msbuild/2003"


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def render_descriptor(
    references: Iterable[str] = (),
    assembly_name: Optional[str] = None,
    root_namespace: Optional[str] = None,
    target_framework: Optional[str] = "net8.0",
    use_wpf: bool = False,
    use_windows_forms: bool = False,
    msbuild_namespace: bool = False,
) -> str:
    """Render the XML text of a small .csproj file."""
    properties = []
    if target_framework is not None:
        properties.append(f"<TargetFramework>{target_framework}</TargetFramework>")
    if assembly_name is not None:
        properties.append(f"<AssemblyName>{assembly_name}</AssemblyName>")
    if root_namespace is not None:
        properties.append(f"<RootNamespace>{root_namespace}</RootNamespace>")
    if use_wpf:
        properties.append("<UseWPF>true</UseWPF>")
    if use_windows_forms:
        properties.append("<UseWindowsForms>true</UseWindowsForms>")

    items = "".join(f'<ProjectReference Include="{ref}" />' for ref in references)
    root_attributes = f' xmlns="{MSBUILD_NAMESPACE}"' if msbuild_namespace else ' Sdk="Microsoft.NET.Sdk"'
    return (
        f"<Project{root_attributes}>"
        f"<PropertyGroup>{''.join(properties)}</PropertyGroup>"
        f"<ItemGroup>{items}</ItemGroup>"
        "</Project>"
    )


def write_file(path: Path, content: str) -> Path:
    """Write dedented ``content`` to ``path``, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing ``<tmp>/<name>/<name>.csproj``.

    References are given as paths relative to the project directory, e.g.
    ``"../Core/Core.csproj"``.
    """

    def _make(name: str, references: Iterable[str] = (), **kwargs) -> Path:
        return write_file(
            tmp_path / name / f"{name}.csproj",
            render_descriptor(references, **kwargs),
        )

    return _make


@pytest.fixture
def make_markup(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a markup file and, optionally, its code-behind."""

    def _make(relative: str, content: str, code_behind: Optional[str] = None) -> Path:
        markup_path = write_file(tmp_path / relative, content)
        if code_behind is not None:
            write_file(markup_path.with_name(markup_path.name + ".cs"), code_behind)
        return markup_path

    return _make


@pytest.fixture
def solution_tree(tmp_path: Path, make_project, make_markup) -> Path:
    """A small solution: App -> (Core, Controls), Controls -> Core.

    ``Legacy`` targets .NET Framework 4.8 and is referenced from App too.
    Returns the path of the entry project.
    """
    make_project("Core", root_namespace="Company.Core")
    make_project("Controls", ["../Core/Core.csproj"], root_namespace="Company.Controls", use_wpf=True)
    make_project("Legacy", target_framework="net48")
    entry = make_project(
        "App",
        ["../Core/Core.csproj", "../Controls/Controls.csproj", "../Legacy/Legacy.csproj"],
        root_namespace="Company.App",
    )

    make_markup(
        "App/MainWindow.xaml",
        """\
        <Window x:Class="Company.App.MainWindow"
                xmlns:controls="clr-namespace:Company.Controls;assembly=Controls">
            <controls:Gauge Value="3" />
        </Window>
        """,
        code_behind="""\
        namespace Company.App
        {
            public partial class MainWindow : Window
            {
            }
        }
        """,
    )
    make_markup(
        "Controls/Gauge.xaml",
        """\
        <UserControl x:Class="Company.Controls.Gauge" />
        """,
        code_behind="""\
        namespace Company.Controls
        {
            public partial class Gauge : UserControl { }
        }
        """,
    )
    return entry
