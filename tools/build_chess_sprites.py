# tools/build_chess_sprites.py
#
# Offline tool:
#   Normalise downloaded chess piece PNGs into the square RGBA sprites the board
#   loads by class name.
#
# Reads from:
#   assets/raw_sprites/   (non-recursive; also accepts assets/raw_sprites/assets/)
#
# Writes to:
#   assets/sprites/
#
# Output files (exact):
#   white-pawn.png, white-knight.png, ... black-king.png

from __future__ import annotations

import shutil
import sys
import time
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

# ----------------------------
# CONFIG
# ----------------------------

OUT_SIZE = 256

RAW_SPRITES_DIR = Path("assets/raw_sprites")
OUTPUT_SPRITES_DIR = Path("assets/sprites")


# ----------------------------
# Constants
# ----------------------------

COLORS = ("white", "black")
KINDS = ("pawn", "knight", "bishop", "rook", "queen", "king")
KIND_LETTERS = {"p": "pawn", "n": "knight", "b": "bishop", "r": "rook", "q": "queen", "k": "king"}

TARGETS = {f"{c}-{k}.png" for c in COLORS for k in KINDS}


# ----------------------------
# Paths
# ----------------------------

def project_root() -> Path:
    return Path(__file__).resolve().parent.parent


def input_dirs(base: Path) -> list[Path]:
    dirs = [base]
    nested = base / "assets"
    if nested.is_dir():
        dirs.append(nested)
    return dirs


# ----------------------------
# Detection helpers
# ----------------------------

def _detect_color(filename: str) -> str | None:
    """
    'white' / 'black' from common download names:
    lt45/dt45 (wikimedia), full words, short forms, or a w/b token.
    """
    n = filename.lower()

    if "lt45" in n:
        return "white"
    if "dt45" in n:
        return "black"

    if "white" in n or "wht" in n:
        return "white"
    if "black" in n or "blk" in n:
        return "black"

    stem = n.rsplit(".", 1)[0]
    # 'wp.png' / 'bk.png'
    if len(stem) == 2 and stem[0] in "wb" and stem[1] in KIND_LETTERS:
        return "white" if stem[0] == "w" else "black"

    for sep in ("_", "-", " "):
        if f"{sep}w" in n:
            return "white"
        if f"{sep}b" in n:
            return "black"
    return None


def _detect_kind(filename: str) -> str | None:
    n = filename.lower()

    # Words first (less ambiguous)
    for kind in KINDS:
        if kind in n:
            return kind

    stem = n.rsplit(".", 1)[0]
    if len(stem) == 2 and stem[0] in "wb" and stem[1] in KIND_LETTERS:
        return KIND_LETTERS[stem[1]]

    for letter, kind in KIND_LETTERS.items():
        if f"_{letter}" in n or f"-{letter}" in n or f"{letter}lt45" in n or f"{letter}dt45" in n:
            return kind
    return None


def detect_target_name(filename: str) -> str | None:
    """Runtime sprite filename ('white-pawn.png') or None if unrecognised."""
    color = _detect_color(filename)
    if not color:
        return None
    kind = _detect_kind(filename)
    if not kind:
        return None
    return f"{color}-{kind}.png"


# ----------------------------
# Rendering
# ----------------------------

def safe_rerender_png(src_path: Path, dst_path: Path, out_size: int) -> None:
    """Scale to fit an out_size square, centred on a transparent canvas."""
    with Image.open(src_path) as src:
        img = src.convert("RGBA")

    fitted = ImageOps.contain(img, (out_size, out_size), Image.Resampling.LANCZOS)
    canvas = Image.new("RGBA", (out_size, out_size), (0, 0, 0, 0))
    canvas.paste(fitted, ((out_size - fitted.width) // 2, (out_size - fitted.height) // 2), fitted)

    dst_path.parent.mkdir(parents=True, exist_ok=True)
    canvas.save(dst_path, format="PNG")


# ----------------------------
# IO helpers
# ----------------------------

def iter_candidate_pngs(dirs: list[Path]) -> list[Path]:
    """Non-recursive scan; skips '_'-prefixed files and already-normalised names."""
    out: list[Path] = []
    for d in dirs:
        if not d.is_dir():
            continue
        for p in sorted(d.iterdir(), key=lambda x: x.name.lower()):
            if not p.is_file() or p.suffix.lower() != ".png":
                continue
            if p.name.startswith("_") or p.name.lower() in TARGETS:
                continue
            out.append(p)
    return out


# ----------------------------
# Main
# ----------------------------

def build(raw_dir: Path, out_dir: Path, *, out_size: int = OUT_SIZE) -> dict[str, str]:
    """Convert every recognised PNG; returns {target name: source name}."""
    in_dirs = input_dirs(raw_dir)
    if not any(d.is_dir() for d in in_dirs):
        raise SystemExit(f"Missing input folder.\nExpected: {raw_dir}")

    candidates = iter_candidate_pngs(in_dirs)
    if not candidates:
        raise SystemExit(
            "No PNGs found to convert.\n"
            "Looked in:\n - " + "\n - ".join(str(d) for d in in_dirs)
        )

    out_dir.mkdir(parents=True, exist_ok=True)
    backup_dir = out_dir / f"_backup_{time.strftime('%Y%m%d-%H%M%S')}"

    kept_from: dict[str, str] = {}
    for src in candidates:
        target = detect_target_name(src.name)
        if not target:
            print(f"Skipping (unrecognised): {src.name}")
            continue
        if target in kept_from:
            print(f"Skipping duplicate for {target}: {src.name} (kept {kept_from[target]})")
            continue

        dst = out_dir / target
        if dst.exists():
            backup_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(dst, backup_dir / target)

        try:
            safe_rerender_png(src, dst, out_size)
        except (OSError, UnidentifiedImageError) as e:
            print(f"FAILED: {src.name}: {e}", file=sys.stderr)
            continue

        kept_from[target] = src.name
        print(f"OK: {src.name}  ->  {target}")

    missing = sorted(TARGETS - set(kept_from))
    if missing:
        print("\nMissing pieces:")
        for m in missing:
            print(" -", m)
    else:
        print("\nAll 12 pieces generated successfully.")
    return kept_from


def main(raw_dir: Path | None = None, out_dir: Path | None = None) -> dict[str, str]:
    root = project_root()
    return build(
        Path(raw_dir) if raw_dir else root / RAW_SPRITES_DIR,
        Path(out_dir) if out_dir else root / OUTPUT_SPRITES_DIR,
    )


if __name__ == "__main__":
    main()
