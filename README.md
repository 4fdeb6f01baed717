# drillrunner

A command-line companion for working through a set of small Rust exercises.
It compiles each exercise with `rustc`, or runs `cargo clippy` / `cargo test`
for the exercises that need them. It then runs the result and tells you whether you
can move on.

## Requirements

- Python 3.11 or newer
- A Rust toolchain with `rustc` on your `PATH`, and `cargo` for Clippy and
  build-script exercises
- `git`, for `drillrunner reset`

## Installation

```
pip install .
```

## Usage

Run every command from the exercise directory, the one holding `info.toml`.
If that file is missing, or if `rustc --version` cannot be run, drillrunner
prints a message and exits with status 1.

`info.toml` lists the exercises in order under `[[exercises]]`. Each entry has
these keys:

- `name`
- `path`
- `mode`: one of `compile`, `test`, `clippy` or `buildscript`
- `hint`

```
drillrunner                 # show the welcome text
drillrunner --version       # print the version (v5.5.1)
drillrunner watch           # verify in order, re-run on every file change
drillrunner verify          # verify every exercise once, in order
drillrunner run intro1      # compile and run one exercise
drillrunner run next        # run the first exercise that is not done yet
drillrunner hint intro1     # print the hint for an exercise
drillrunner reset intro1    # undo your changes with "git stash -- <file>"
drillrunner list            # table of names, paths and status
drillrunner lsp             # write rust-project.json for rust-analyzer
drillrunner cicvverify      # check all exercises, write a JSON report
```

Pass `--nocapture` before the subcommand to see the output of test
exercises, for example `drillrunner --nocapture run intro1`.

`run`, `verify` and `cicvverify` exit with status 1 when an exercise fails. Usage errors also exit with status 1, as does an unknown exercise name.

### Modes

| mode          | what is done                                                     |
|---------------|------------------------------------------------------------------|
| `compile`     | `rustc --edition 2021`, then the binary is run                   |
| `test`        | `rustc --test`, then the harness is run with `--show-output`     |
| `clippy`      | writes `exercises/clippy/Cargo.toml`, builds, runs `cargo clippy -- -D warnings -D clippy::float_cmp` |
| `buildscript` | writes `exercises/tests/Cargo.toml` and runs `cargo test`        |

The compiled binary is written to a temporary file in the current directory. That file is removed afterwards.

### Finishing an exercise

An exercise counts as done once two things are true:

- It compiles and runs, or its tests pass.
- The `// I AM NOT DONE` marker has been removed from the file.

While the marker is still there, `verify` and `watch` stop at that exercise. They show the two lines before and after the marker so you can keep working. `run` does not look at the marker.

### Watch mode

`drillrunner watch` verifies exercises in order and stops at the first one
that fails. After that it re-checks whenever a `.rs` file under `exercises/`
is created or modified. It starts with the changed exercise, then goes on to the
other pending ones. While it runs you can type:

| command  | effect                                        |
|----------|-----------------------------------------------|
| `hint`   | print the hint for the current exercise       |
| `clear`  | clear the screen                              |
| `quit`   | leave watch mode                              |
| `!<cmd>` | run a command, e.g. `!rustc --explain E0381`  |
| `help`   | list these commands                           |

Use `drillrunner watch --success-hints` to also see each exercise's hint once
it passes.

### Listing exercises

```
drillrunner list --paths          # only paths (-p)
drillrunner list --names          # only names (-n)
drillrunner list --filter if,var  # names or paths containing any pattern (-f)
drillrunner list --solved         # only exercises that are done (-s)
drillrunner list --unsolved       # only exercises still pending (-u)
```

Filter patterns are lower-cased and separated by commas. The listing ends with
a progress line: `Progress: You completed N / M exercises (P %).`

### rust-analyzer support

`drillrunner lsp` writes `rust-project.json` with one crate for every `.rs` file
under `exercises/`. The standard library sources are taken from
`RUST_SRC_PATH` when it is set. Otherwise they are found through `rustc --print sysroot`.

### Batch checking

`drillrunner cicvverify` runs every exercise concurrently and prints progress
as each one finishes. It then writes a summary to
`.github/result/check_result.json`. That directory must already exist. The summary holds:

- each exercise's name and result
- the number of exercises, successes and failures
- the total time in seconds

### Output

Set the environment variable `NO_EMOJI` to replace emoji in messages with
plain characters.

Colours are used only when standard output is a terminal. `CLICOLOR_FORCE`
(any value other than `0`) turns them on. `CLICOLOR=0` turns them off.

## Library use

The pieces behind the commands can be imported:

- `drillrunner.exercise`: `load_exercises`, `Exercise`, `Mode`, `CompilationError`, `RunError`
- `drillrunner.verify`: `verify`, `test`
- `drillrunner.run`: `run`, `reset`
- `drillrunner.checklist`: `check_all`
- `drillrunner.watch`: `watch`
- `drillrunner.project`: `RustAnalyzerProject`

## What it does not do

drillrunner does not ship any exercises, and it does not install a Rust
toolchain. It works on the `info.toml` and exercise files you give it.