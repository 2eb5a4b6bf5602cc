"""
Build configuration for jlbuild.

This module holds the immutable user-facing configuration and the single
resolution pass that turns it into the fully-resolved configuration consumed
by every pipeline stage.

Resolution rules, applied once and in this order:
    1. full_release enables clean, auto_deps, executable, remove_temp,
       copy_runtime_libs and release
    2. auto_deps enables shared when executable is selected, then object
       when shared is selected
    3. release defaults optimize to 3 and debug to 0
    4. julia option defaults: precompiled=no when cpu_target is set,
       compilecache=no, startup_file=no
"""

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Tuple, Union

from ..errors import ConfigurationError
from ..runtime.command import JuliaCompileRequest

DEFAULT_DRIVER_PROGRAM = Path(__file__).resolve().parent.parent / "assets" / "program.c"
DEFAULT_BUILD_DIR = "builddir"

MAX_OPTIMIZE_LEVEL = 3
NO_DEBUG_LEVEL = 0

YES_NO = ("yes", "no")

CHOICES = {
    "precompiled": YES_NO,
    "compilecache": YES_NO,
    "startup_file": YES_NO,
    "handle_signals": YES_NO,
    "compile": ("yes", "no", "all", "min"),
    "inline": YES_NO,
    "check_bounds": YES_NO,
    "math_mode": ("ieee", "fast"),
    "depwarn": ("yes", "no", "error"),
}

LEVEL_RANGES = {
    "optimize": range(0, MAX_OPTIMIZE_LEVEL + 1),
    "debug": range(0, 3),
}

PathLike = Union[str, Path]


def _as_path(value: Optional[PathLike]) -> Optional[Path]:
    if value is None:
        return None
    return Path(value)


@dataclass(frozen=True)
class BuildConfiguration:
    """Every user-facing option of a jlbuild run.

    Options left as None are "not specified"; resolve() fills in defaults.
    """

    program: Path
    driver_program: Optional[Path] = None
    build_dir: Optional[Path] = None
    output_name: Optional[str] = None
    snoop_file: Optional[Path] = None

    verbose: bool = False
    quiet: bool = False

    clean: bool = False
    auto_deps: bool = False
    object: bool = False
    shared: bool = False
    shared_init: bool = False
    executable: bool = False
    remove_temp: bool = False
    copy_runtime_libs: bool = False
    copy_files: Optional[Tuple[Path, ...]] = None
    release: bool = False
    full_release: bool = False

    sysimage: Optional[str] = None
    precompiled: Optional[str] = None
    compilecache: Optional[str] = None
    home: Optional[str] = None
    startup_file: Optional[str] = None
    handle_signals: Optional[str] = None
    compile: Optional[str] = None
    cpu_target: Optional[str] = None
    optimize: Optional[int] = None
    debug: Optional[int] = None
    inline: Optional[str] = None
    check_bounds: Optional[str] = None
    math_mode: Optional[str] = None
    depwarn: Optional[str] = None

    julia: str = "julia"
    cc: str = "gcc"
    cc_flags: Tuple[str, ...] = ()
    toolchain_root: Optional[Path] = None

    def __post_init__(self):
        for name in ("program", "driver_program", "build_dir", "snoop_file", "toolchain_root"):
            object.__setattr__(self, name, _as_path(getattr(self, name)))
        if self.copy_files is not None:
            object.__setattr__(self, "copy_files", tuple(Path(p) for p in self.copy_files))
        object.__setattr__(self, "cc_flags", tuple(self.cc_flags))

        for name, allowed in CHOICES.items():
            value = getattr(self, name)
            if value is not None and value not in allowed:
                raise ConfigurationError(
                    f"Invalid value for {name}: {value!r} (expected one of {', '.join(allowed)})"
                )
        for name, allowed in LEVEL_RANGES.items():
            value = getattr(self, name)
            if value is None:
                continue
            try:
                level = int(value)
            except (TypeError, ValueError):
                raise ConfigurationError(f"Invalid value for {name}: {value!r}")
            if level not in allowed:
                raise ConfigurationError(
                    f"Invalid value for {name}: {value!r} (expected {allowed.start}-{allowed.stop - 1})"
                )
            object.__setattr__(self, name, level)

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True)
class StageSelection:
    """Which pipeline stages run, after macro expansion and dependency closure."""

    clean: bool = False
    object: bool = False
    shared: bool = False
    executable: bool = False
    remove_temp: bool = False
    copy_runtime_libs: bool = False
    copy_user_files: bool = False

    @property
    def nothing_selected(self) -> bool:
        return not any(getattr(self, f.name) for f in fields(self))

    @property
    def only_clean(self) -> bool:
        return self.clean and not any(
            getattr(self, f.name) for f in fields(self) if f.name != "clean"
        )

    @property
    def needs_runtime(self) -> bool:
        return self.object or self.shared or self.executable or self.copy_runtime_libs

    @property
    def needs_c_compiler(self) -> bool:
        return self.shared or self.executable

    def enabled(self) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(self) if getattr(self, f.name))


@dataclass(frozen=True)
class ResolvedConfiguration:
    """Fully-resolved configuration; every stage reads it, none changes it."""

    program: Path
    driver_program: Path
    build_dir: Path
    output_name: str
    snoop_file: Optional[Path]
    stages: StageSelection
    shared_init: bool
    copy_files: Tuple[Path, ...]
    julia_request: JuliaCompileRequest
    julia: str
    cc: str
    cc_flags: Tuple[str, ...]
    toolchain_root: Optional[Path]
    verbose: bool = False
    quiet: bool = False
    release: bool = False

    @property
    def optimize(self) -> Optional[int]:
        return self.julia_request.optimize

    @property
    def debug(self) -> Optional[int]:
        return self.julia_request.debug


def expand_macros(config: BuildConfiguration) -> BuildConfiguration:
    """Apply the full_release, auto_deps and release rules."""
    if config.full_release:
        config = replace(
            config,
            clean=True,
            auto_deps=True,
            executable=True,
            remove_temp=True,
            copy_runtime_libs=True,
            release=True,
        )

    if config.auto_deps:
        shared = config.shared or config.executable
        obj = config.object or shared
        config = replace(config, shared=shared, object=obj)

    if config.release:
        config = replace(
            config,
            optimize=MAX_OPTIMIZE_LEVEL if config.optimize is None else config.optimize,
            debug=NO_DEBUG_LEVEL if config.debug is None else config.debug,
        )

    return config


def build_julia_request(config: BuildConfiguration) -> JuliaCompileRequest:
    """Derive the julia compile request, filling julia option defaults."""
    precompiled = config.precompiled
    if precompiled is None and config.cpu_target is not None:
        precompiled = "no"

    return JuliaCompileRequest(
        cpu_target=config.cpu_target,
        sysimage=config.sysimage,
        compile=config.compile,
        depwarn=config.depwarn,
        precompiled=precompiled,
        compilecache=config.compilecache if config.compilecache is not None else "no",
        home=config.home,
        startup_file=config.startup_file if config.startup_file is not None else "no",
        handle_signals=config.handle_signals,
        optimize=config.optimize,
        debug=config.debug,
        inline=config.inline,
        check_bounds=config.check_bounds,
        math_mode=config.math_mode,
    )


def resolve(
    config: BuildConfiguration,
    default_driver: Optional[Path] = None,
) -> ResolvedConfiguration:
    """Resolve a BuildConfiguration once, before the pipeline begins.

    Args:
        config: User configuration
        default_driver: Driver program used when none is configured
            (defaults to the bundled program.c)

    Returns:
        ResolvedConfiguration with absolute paths and expanded stages
    """
    expanded = expand_macros(config)

    program = expanded.program.absolute()
    driver = expanded.driver_program or default_driver or DEFAULT_DRIVER_PROGRAM
    build_dir = expanded.build_dir or Path(DEFAULT_BUILD_DIR)
    output_name = expanded.output_name or program.stem

    stages = StageSelection(
        clean=expanded.clean,
        object=expanded.object,
        shared=expanded.shared,
        executable=expanded.executable,
        remove_temp=expanded.remove_temp,
        copy_runtime_libs=expanded.copy_runtime_libs,
        copy_user_files=expanded.copy_files is not None,
    )

    return ResolvedConfiguration(
        program=program,
        driver_program=Path(driver).absolute(),
        build_dir=Path(build_dir).absolute(),
        output_name=output_name,
        snoop_file=expanded.snoop_file.absolute() if expanded.snoop_file else None,
        stages=stages,
        shared_init=expanded.shared_init,
        copy_files=tuple(p.absolute() for p in expanded.copy_files or ()),
        julia_request=build_julia_request(expanded),
        julia=expanded.julia,
        cc=expanded.cc,
        cc_flags=expanded.cc_flags,
        toolchain_root=expanded.toolchain_root,
        verbose=expanded.verbose,
        quiet=expanded.quiet and not expanded.verbose,
        release=expanded.release,
    )


__all__ = [
    "BuildConfiguration",
    "ResolvedConfiguration",
    "StageSelection",
    "DEFAULT_DRIVER_PROGRAM",
    "expand_macros",
    "build_julia_request",
    "resolve",
]
