# fssync

fssync keeps target directories in step with source directories. A manager
process watches each source directory. When a file is created, modified or
deleted directly inside it, the manager hands the change to a worker process.
The worker copies or removes the matching file in the target directory.

A console talks to the running manager through two named pipes, `fss_in` and
`fss_out`. The manager creates them in its working directory and removes them
when it exits. Because it uses named pipes, fssync runs on POSIX systems only.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Configuration

The config file holds one pair of directories per line. The source comes
first, then a space, then the target. Everything after the first space is
taken as the target.

```
./data/docs ./backup/docs
./data/photos ./backup/photos
```

A line with no target is reported on standard error and skipped. Blank lines
are ignored.

When the manager starts, it monitors every pair whose source and target both
exist, and it begins with a full sync of each.

## Running the manager

```
fss-manager -l manager-log -c config.txt -n 5
```

* `-l` names the manager log file. It is truncated when the manager starts.
* `-c` names the config file.
* `-n` sets how many workers may run at once. It defaults to 5, and 5 is the
  smallest value accepted.

The manager prints the usage text and exits with status 1 if `-l` or `-c` is
missing or if `-n` is below 5.

When every worker is busy, new jobs wait in a first-in, first-out queue. Each
time a worker finishes, the job at the head of the queue starts.

## Running the console

Start the console in the same directory as the manager:

```
fss-console -l console-log
```

The console shows a `$` prompt and accepts these commands:

| Command                  | Effect                                                        |
|--------------------------|---------------------------------------------------------------|
| `add <source> <target>`  | Start monitoring `source` and fully sync it into `target`.    |
| `cancel <source>`        | Stop monitoring `source`.                                     |
| `status <source>`        | Show the target, last sync time, error count and state.       |
| `sync <source>`          | Fully sync `source` now and resume monitoring it.             |
| `shutdown`               | Stop monitoring, wait for workers and queued jobs, then exit. |

The console checks each command before it sends it. A malformed or unknown
command is reported on standard error and is not sent. The console writes
every command it sends, with a timestamp, to its own log file, and it writes
the manager's replies there too. After `shutdown`, the console prints the
manager's replies until the manager closes the pipe, and then it exits.

The `status` reply shows `Last Sync: ---` for a directory that has never been
synced. Adding a source that is already known replies `Already in queue`.
Cancelling, querying or syncing an unknown source replies
`Directory not monitored`.

## Running a worker by hand

A worker takes four arguments: a source directory, a target directory, a file
name and an operation. The operation is one of `FULL`, `ADDED`, `MODIFIED`
or `DELETED`. A full sync uses `ALL` as the file name:

```
fss-worker ./data/docs ./backup/docs ALL FULL
fss-worker ./data/docs ./backup/docs notes.txt MODIFIED
```

* `FULL` copies every entry directly inside the source, except directories,
  into the target. Existing target files are overwritten.
* `ADDED` copies one file into the target. Existing bytes in the target file
  are written over, and the file is not truncated first.
* `MODIFIED` replaces the target copy of one file with the source contents.
* `DELETED` removes the target copy of one file.

The worker exits with status 0 on success and 1 if a file could not be synced
or the operation is unknown. It exits with 2 if the argument count is wrong.

## Library use

The building blocks can be imported on their own:

* `fssync.store.SyncInfoStore` keeps the state of each watched directory as a
  `WatchDir`: target, last sync time, active flag, error count and watch
  descriptor.
* `fssync.jobqueue.JobQueue` holds the pending `Job`s in FIFO order.
* `fssync.worker` provides `full_sync`, `add_file`, `modify_file`,
  `delete_file` and `run`. These raise `SyncError` when a file cannot be
  synced.
* `fssync.watcher.DirectoryWatcher` watches directories without recursing
  into them and returns `WatchEvent`s from `get_events`. It works as a context
  manager.
* `fssync.commands.Manager` carries out the console commands. It takes the
  watcher to use, and optionally the log path, the worker limit and the
  function that starts a worker.

## Limitations

* Only entries directly inside a watched directory are synced.
  Subdirectories are neither watched nor copied.
* Workers report failures only on their standard error and through their exit
  status. The manager does not collect these results. Its error count covers
  only failures to watch a directory, to open its log or to start a worker.
* When every worker is busy, `add` and `sync` queue the job and send no reply
  to the console.