"""
bfrun command-line tests: exit codes and stdin/stdout wiring.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io

import pytest
import bfrun


@pytest.fixture
def stdin_bytes(monkeypatch):
    def _set(data: bytes):
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(data)))
    return _set


class TestExitCodes:
    def test_normal_termination(self, capsysbinary):
        assert bfrun.main(["-e", "+++.", "--no-input"]) == 0
        assert capsysbinary.readouterr().out == b"\x03"

    def test_program_file(self, tmp_path, capsysbinary):
        prog = tmp_path / "three.bf"
        prog.write_text("+++ output it: .\n", encoding="utf-8")
        assert bfrun.main([str(prog), "--no-input"]) == 0
        assert capsysbinary.readouterr().out == b"\x03"

    def test_missing_file(self, tmp_path, capsysbinary):
        assert bfrun.main([str(tmp_path / "nope.bf")]) == 1
        assert b"File not found" in capsysbinary.readouterr().err

    def test_malformed_program(self, capsysbinary):
        assert bfrun.main(["-e", "[", "--no-input"]) == 1
        assert b"Malformed program" in capsysbinary.readouterr().err

    def test_step_limit(self, capsysbinary):
        assert bfrun.main(["-e", "+[]", "--no-input", "--max-steps", "50"]) == 3

    def test_program_required(self, capsys):
        with pytest.raises(SystemExit) as exc:
            bfrun.main([])
        assert exc.value.code == 2


class TestWiring:
    def test_stdin_is_source(self, stdin_bytes, capsysbinary):
        stdin_bytes(b"hey")
        assert bfrun.main(["-e", ",[.,]"]) == 0
        assert capsysbinary.readouterr().out == b"hey"

    def test_dump_and_trace_go_to_stderr(self, capsysbinary):
        assert bfrun.main(["-e", ">++", "--no-input", "--dump", "--trace"]) == 0
        captured = capsysbinary.readouterr()
        assert captured.out == b""
        assert b"ptr=1" in captured.err
        assert b"steps=3" in captured.err

    def test_paced_run(self, monkeypatch, capsysbinary):
        sleeps = []
        monkeypatch.setattr("bfvm.machine.time.sleep", sleeps.append)
        assert bfrun.main(["-e", "++.", "--no-input", "--delay", "0.1"]) == 0
        assert sleeps == [0.1, 0.1]


class TestLogging:
    def test_log_file_written(self, tmp_path):
        import logging
        from bfvm.log_setup import setup_logging

        logger = setup_logging(name="bfvm.filetest", log_dir=tmp_path)
        logger.debug("hello from test")
        for handler in logger.handlers:
            handler.flush()
        files = list(tmp_path.glob("bfvm.filetest_*.log"))
        assert len(files) == 1
        assert "hello from test" in files[0].read_text(encoding="utf-8")
        # second call does not stack handlers
        assert setup_logging(name="bfvm.filetest") is logger
        assert len(logger.handlers) == 2
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
        logging.getLogger("bfvm.filetest").setLevel(logging.NOTSET)

    def test_repeat_runs_apply_new_options(self, tmp_path, capsysbinary):
        import logging
        from rich.logging import RichHandler

        logger = logging.getLogger("bfvm")

        def consoles():
            return [h for h in logger.handlers if isinstance(h, RichHandler)]

        def files():
            return [h for h in logger.handlers if isinstance(h, logging.FileHandler)]

        try:
            assert bfrun.main(["-e", "+", "--no-input"]) == 0
            assert [h.level for h in consoles()] == [logging.WARNING]

            assert bfrun.main(["-e", "+", "--no-input", "--verbose"]) == 0
            assert [h.level for h in consoles()] == [logging.DEBUG]

            assert bfrun.main(["-e", "+", "--no-input", "--log-dir", str(tmp_path)]) == 0
            assert bfrun.main(["-e", "+", "--no-input", "--log-dir", str(tmp_path)]) == 0
            assert [h.level for h in consoles()] == [logging.WARNING]
            assert len(files()) == 1
            assert list(tmp_path.glob("bfvm_*.log"))
        finally:
            for handler in files():
                handler.close()
                logger.removeHandler(handler)
            for handler in consoles():
                handler.setLevel(logging.WARNING)
