# scpilink

A small client for instruments that speak SCPI over a plain TCP connection,
an interactive command prompt for it, and a demonstration server that answers
the same commands.

## Supported commands

| Short form    | Long form          | Reply                                             |
|---------------|--------------------|---------------------------------------------------|
| `SYST:STAT?`  | `SYSTem:STATe?`    | one byte, `0` or `1`: whether the device runs     |
| `MEAS:POIN?`  | `MEASure:POINts?`  | a big-endian 32-bit count of measurement points   |
| `MEAS:DATA?`  | `MEASure:DATA?`    | that many big-endian 16-bit samples               |

On the client side, command names are matched without regard to case, and a
command must look like SCPI (`WORD:WORD...` with an optional trailing `?`),
otherwise it is rejected. Whatever form is typed, the client sends the short
form to the server.

`MEAS:DATA?` needs the point count first, so run `MEAS:POIN?` before it; the
samples are written to a file named `data` in the working directory.

## Installation

```
pip install .
```

## Running the demonstration server

```
scpilink-server 1337
```

The server listens on every interface at the given port, prints
`Server started on port 1337`, and logs every command it receives. It answers
the short and long forms in the table exactly as written there (it does not
ignore case); anything else gets `ERROR: Unknown command\n`. Every state query
answers `1`, the point count is always 1000, and every sample is `1`.

## Running the client

Write a JSON configuration file naming the server:

```json
{"address": "127.0.0.1", "port": 1337}
```

and start the client with it:

```
scpilink config.json
```

The client connects (if that fails it reports the error and still opens the
prompt) and opens an interactive prompt. Besides SCPI commands it accepts:

- `help` – list what can be typed;
- `reconnect` – connect again if the connection is not open;
- `exit` – leave the prompt (so does the end of input or Ctrl-C).

A session looks like this:

```
> SYST:STAT?
Result: 1
> MEAS:POIN?
Result: 1000
> MEAS:DATA?
Result saved to: data
```

## Using it from Python

```python
from scpilink.client import Client

with Client("127.0.0.1", 1337) as client:
    client.connect()
    print(client.execute_command("SYST:STAT?"))
    print(client.execute_command("MEAS:POIN?"))
    print(client.server_info.data_size)
```

Leaving the `with` block closes the connection; connecting is done by
`Client.connect`. `Client.execute_command` returns the result message and
raises `scpilink.client.ClientError` when a command is not SCPI, is not
supported, or the connection fails. The last values the server reported are
kept in `client.server_info` (`scpilink.server_info.ServerInfo`).

Other pieces:

- `scpilink.commands` – the `GetState`, `GetDataSize` and `GetData` commands
  and the `CommandFactory` that creates them by name (`default_factory()`
  holds the built-in ones).
- `scpilink.validator` – `is_scpi_command` and `is_commands_match`.
- `scpilink.cli` – `run_cli` runs the prompt over any lines and output
  streams; `CliThread` runs it on a background thread.
- `scpilink.backend.Backend` – runs commands on a client and keeps the last
  ten results, newest first (`history()`), calling each function in
  `history_changed` with the whole history whenever it changes.
- `scpilink.server` – `ScpiServer` (pass `port=0` for a free port, then
  `serve_forever()` and `shutdown()`) and `respond(command)`, which gives the
  reply bytes for a command.

## What it does not do

There is no graphical interface. `Backend` keeps the history a window would
show, but no window is included; the only front end is the text prompt.

## Running the tests

```
pip install .[test]
pytest
```