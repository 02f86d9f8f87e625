import socket
import threading
from pathlib import Path

import pytest

from scpilink.client import Client, ClientError
from scpilink.commands import Command, CommandFactory
from scpilink.server_info import DataSizeUndefinedError


class _Instrument:
    def __init__(self, replies, hangup=()):
        self.replies = dict(replies)
        self.hangup = set(hangup)
        self.received = []
        self.connections = 0
        self._stop = threading.Event()
        self._threads = []
        self._listener = socket.create_server(("127.0.0.1", 0))
        self._listener.settimeout(0.05)
        self.port = self._listener.getsockname()[1]
        accept = threading.Thread(target=self._accept_loop, daemon=True)
        self._threads.append(accept)
        accept.start()

    def _accept_loop(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._listener.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            self.connections += 1
            worker = threading.Thread(target=self._serve, args=(conn,), daemon=True)
            self._threads.append(worker)
            worker.start()

    def _serve(self, conn):
        conn.settimeout(0.05)
        with conn:
            while not self._stop.is_set():
                try:
                    data = conn.recv(4096)
                except TimeoutError:
                    continue
                except OSError:
                    return
                if not data:
                    return
                command = data.decode().strip()
                self.received.append(command)
                conn.sendall(self.replies.get(command, b""))
                if command in self.hangup:
                    return

    def close(self):
        self._stop.set()
        self._listener.close()
        for thread in self._threads:
            thread.join(timeout=2)


@pytest.fixture
def instrument():
    created = []

    def make(replies, hangup=()):
        inst = _Instrument(replies, hangup)
        created.append(inst)
        return inst

    yield make
    for inst in created:
        inst.close()


def _free_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_connect_failure_names_address():
    port = _free_port()
    client = Client("127.0.0.1", port)
    with pytest.raises(ClientError, match=f"Failed to connect to 127.0.0.1:{port}"):
        client.connect()
    assert client.is_connected() is False


def test_reconnect_failure_names_address():
    port = _free_port()
    client = Client("127.0.0.1", port)
    with pytest.raises(ClientError, match=f"Failed to reconnect to 127.0.0.1:{port}"):
        client.reconnect()


def test_connect_and_context_manager_close(instrument):
    inst = instrument({})
    with Client("127.0.0.1", inst.port) as client:
        assert client.is_connected() is False
        client.connect()
        assert client.is_connected() is True
    assert client.is_connected() is False


def test_get_state(instrument):
    inst = instrument({"SYST:STAT?": b"\x01"})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        assert client.execute_command("SYST:STAT?") == "Result: 1"
        assert client.server_info.is_running is True
    assert inst.received == ["SYST:STAT?"]


def test_full_name_in_any_case_sends_short_name(instrument):
    inst = instrument({"SYST:STAT?": b"\x00"})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        assert client.execute_command("system:state?") == "Result: 0"
        assert client.server_info.is_running is False
    assert inst.received == ["SYST:STAT?"]


def test_get_data_size(instrument):
    inst = instrument({"MEAS:POIN?": b"\x00\x00\x03\xe8"})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        assert client.execute_command("MEASure:POINts?") == "Result: 1000"
        assert client.server_info.data_size == 1000


def test_get_data_writes_file(instrument, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    samples = b"\x00\x01" * 3
    inst = instrument({"MEAS:POIN?": b"\x00\x00\x00\x03", "MEAS:DATA?": samples})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        client.execute_command("MEAS:POIN?")
        assert client.execute_command("MEAS:DATA?") == "Result saved to: data"
        assert client.server_info.data_path == Path("data")
    assert (tmp_path / "data").read_bytes() == samples


def test_get_data_without_size_raises(instrument):
    inst = instrument({})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        with pytest.raises(DataSizeUndefinedError):
            client.execute_command("MEAS:DATA?")
    assert inst.received == []


def test_rejects_text_that_is_not_scpi(instrument):
    inst = instrument({})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        with pytest.raises(ClientError, match="Is not SCPI command"):
            client.execute_command("hello world!")


def test_rejects_unknown_command(instrument):
    inst = instrument({})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        with pytest.raises(ClientError, match="A not-yet-supported or invalid command"):
            client.execute_command("FOO:BAR?")


def test_custom_factory_is_used(instrument):
    class Ping(Command):
        name_short = "PING?"
        name_full = "PING?"

        def execute(self, client):
            client.send_command(self.name_short)
            return client.read_response(4).decode()

    factory = CommandFactory()
    factory.register_command(Ping.name_short, Ping.name_full, Ping)
    inst = instrument({"PING?": b"pong"})
    with Client("127.0.0.1", inst.port, factory=factory) as client:
        client.connect()
        assert client.execute_command("ping?") == "pong"


def test_send_without_connection_raises():
    client = Client("127.0.0.1", _free_port())
    with pytest.raises(ClientError, match="Socket is not connected"):
        client.send_command("SYST:STAT?")
    with pytest.raises(ClientError, match="Socket is not connected"):
        client.read_response(1)


def test_read_response_timeout(instrument):
    inst = instrument({})
    with Client("127.0.0.1", inst.port, timeout=0.2) as client:
        client.connect()
        with pytest.raises(ClientError, match="Failed to read response: timeout"):
            client.execute_command("SYST:STAT?")


def test_read_response_connection_closed(instrument):
    inst = instrument({"SYST:STAT?": b""}, hangup={"SYST:STAT?"})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        with pytest.raises(ClientError, match="Connection closed before receiving complete data"):
            client.execute_command("SYST:STAT?")
        assert client.is_connected() is False


def test_large_response_spans_many_chunks(instrument, tmp_path):
    blob = bytes(range(256)) * 40
    inst = instrument({"BLOB?": blob})
    target = tmp_path / "blob.bin"
    with Client("127.0.0.1", inst.port, chunk_size=512) as client:
        client.connect()
        client.send_command("BLOB?")
        client.read_large_response_to_file(target, len(blob))
    assert target.read_bytes() == blob


def test_large_response_timeout(instrument, tmp_path):
    inst = instrument({"BLOB?": b"\x00\x01"})
    with Client("127.0.0.1", inst.port, timeout=0.2) as client:
        client.connect()
        client.send_command("BLOB?")
        with pytest.raises(ClientError, match="Timeout waiting for data from socket"):
            client.read_large_response_to_file(tmp_path / "blob.bin", 4)


def test_large_response_peer_closes(instrument, tmp_path):
    inst = instrument({"BLOB?": b"\x00\x01"}, hangup={"BLOB?"})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        client.send_command("BLOB?")
        with pytest.raises(ClientError, match="Socket closed unexpectedly"):
            client.read_large_response_to_file(tmp_path / "blob.bin", 4)


def test_large_response_requires_open_socket(tmp_path):
    client = Client("127.0.0.1", _free_port())
    target = tmp_path / "blob.bin"
    with pytest.raises(ClientError, match="Socket is not open"):
        client.read_large_response_to_file(target, 4)
    assert not target.exists()


def test_large_response_unwritable_file(instrument, tmp_path):
    inst = instrument({})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        with pytest.raises(ClientError, match="Failed to open file for writing"):
            client.read_large_response_to_file(tmp_path / "missing" / "blob.bin", 4)


def test_reconnect_after_close(instrument):
    inst = instrument({"SYST:STAT?": b"\x01"})
    with Client("127.0.0.1", inst.port) as client:
        client.connect()
        client.execute_command("SYST:STAT?")
        client.reconnect()
        client.execute_command("SYST:STAT?")
        assert inst.connections == 1
        client.close()
        client.reconnect()
        assert client.is_connected() is True
        client.execute_command("SYST:STAT?")
    assert inst.connections == 2
    assert inst.received == ["SYST:STAT?"] * 3