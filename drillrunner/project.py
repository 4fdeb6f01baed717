"""Generation of a rust-project.json description for rust-analyzer."""

from __future__ import annotations

import glob
import json
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class Crate:
    """One exercise file seen by rust-analyzer as a crate."""

    root_module: str
    edition: str = "2021"
    deps: list[str] = field(default_factory=list)
    # Lets rust-analyzer work inside #[test] blocks.
    cfg: list[str] = field(default_factory=lambda: ["test"])

    def to_dict(self) -> dict[str, Any]:
        return {
            "root_module": self.root_module,
            "edition": self.edition,
            "deps": list(self.deps),
            "cfg": list(self.cfg),
        }


@dataclass
class RustAnalyzerProject:
    """Contents of rust-project.json and the means to build it."""

    sysroot_src: str = ""
    crates: list[Crate] = field(default_factory=list)

    def add_path(self, path: str | os.PathLike) -> None:
        """Add a crate for path if it has the .rs extension."""
        if Path(path).suffix == ".rs":
            self.crates.append(Crate(root_module=str(path)))

    def exercises_to_json(self, root: str = "./exercises") -> None:
        """Add a crate for every .rs file below root."""
        pattern = os.path.join(root, "**", "*")
        for path in sorted(glob.glob(pattern, recursive=True)):
            self.add_path(path)

    def get_sysroot_src(self) -> None:
        """Find the standard library sources, from RUST_SRC_PATH or rustc."""
        env_path = os.environ.get("RUST_SRC_PATH")
        if env_path is not None:
            self.sysroot_src = env_path
            return
        result = subprocess.run(["rustc", "--print", "sysroot"], capture_output=True)
        output = (result.stdout or b"").decode("utf-8", errors="replace")
        parts = output.split()
        toolchain = parts[0] if parts else output
        print(f"Determined toolchain: {toolchain}\n")
        self.sysroot_src = str(Path(toolchain, "lib", "rustlib", "src", "rust", "library"))

    def to_json(self) -> str:
        return json.dumps(
            {
                "sysroot_src": self.sysroot_src,
                "crates": [crate.to_dict() for crate in self.crates],
            },
            separators=(",", ":"),
            ensure_ascii=False,
        )

    def write_to_disk(self, path: str | os.PathLike = "./rust-project.json") -> None:
        Path(path).write_text(self.to_json(), encoding="utf-8")