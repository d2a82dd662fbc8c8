import os
import sys
from pathlib import Path
import pytest
from bbunify import batch
from bbunify.batch import chunk_list, expand_inputs, output_path_for, run_batch, unify_paths
from bbunify.core.errors import IntegrityViolation
from bbunify.core.options import UnifyOptions
from bbunify.core.reference import ReferenceSet

REF = ReferenceSet([0x1000, 0x2000])
SCENARIO = "0000 1000 5\n0001 3000 2\n0002 2000 7\n"

def _write(p: Path, text: str) -> Path:
    p.write_text(text, encoding="utf-8")
    return p

def test_output_path_for():
    assert output_path_for("in/run.trace", "out") == Path("out/run.unified")
    assert output_path_for("in/run.trace", "out", strip=True) == Path("out/run.stripped")
    assert output_path_for("in/run", None) == Path("in/run.unified")

def test_chunk_list():
    data = [Path(str(i)) for i in range(7)]
    chunks = list(chunk_list(data, 3))
    assert len(chunks) == 3
    assert [p for c in chunks for p in c] == data
    assert list(chunk_list([], 4)) == []

def test_expand_inputs_directory_and_files(tmp_path: Path):
    d = tmp_path / "traces"
    d.mkdir()
    _write(d / "b", SCENARIO)
    _write(d / "a", SCENARIO)
    (d / "nested").mkdir()
    single = _write(tmp_path / "c.trace", SCENARIO)
    files, failures = expand_inputs([d, single])
    assert files == [d / "a", d / "b", single]
    assert failures == []

def test_missing_path_is_treated_as_file(tmp_path: Path):
    files, failures = expand_inputs([tmp_path / "nope"])
    assert files == [tmp_path / "nope"]
    assert failures == []

@pytest.mark.skipif(sys.platform == "win32" or os.geteuid() == 0, reason="needs POSIX permissions as non-root")
def test_unlistable_directory_is_reported(tmp_path: Path):
    d = tmp_path / "locked"
    d.mkdir()
    d.chmod(0)
    try:
        files, failures = expand_inputs([d])
    finally:
        d.chmod(0o755)
    assert files == []
    assert len(failures) == 1 and failures[0].source == d

def test_directory_expansion_writes_each_file(tmp_path: Path):
    d = tmp_path / "traces"
    d.mkdir()
    _write(d / "a", SCENARIO)
    _write(d / "b", "0000 2000 1\n")
    out = tmp_path / "out" / "nested"
    result = run_batch(REF, [d], UnifyOptions(output_dir=out, jobs=1))
    assert result.ok and result.exit_code == 0
    assert (out / "a.unified").read_text(encoding="utf-8") == "0000 1000 5\n0001 2000 7\n"
    assert (out / "b.unified").read_text(encoding="utf-8") == "0000 2000 1\n"

def test_default_output_is_next_to_input(tmp_path: Path):
    src = _write(tmp_path / "run.trace", SCENARIO)
    result = run_batch(REF, [src], UnifyOptions(strip=True, jobs=1))
    assert result.ok
    assert result.outcomes[0].output == tmp_path / "run.stripped"
    assert (tmp_path / "run.stripped").read_text(encoding="utf-8") == "1000 5\n2000 7\n"

def test_failures_are_isolated(tmp_path: Path):
    good = _write(tmp_path / "good.trace", SCENARIO)
    bad = _write(tmp_path / "bad.trace", "0000 1000 5\nnot a line\n")
    missing = tmp_path / "missing.trace"
    out = tmp_path / "out"
    result = run_batch(REF, [bad, good, missing], UnifyOptions(output_dir=out, jobs=1))
    assert not result.ok
    assert result.exit_code == 1
    assert {o.source for o in result.failed} == {bad, missing}
    assert [o.source for o in result.succeeded] == [good]
    assert "bad.trace:2" in next(o.error for o in result.failed if o.source == bad)
    assert (out / "good.unified").exists()
    assert not (out / "bad.unified").exists()

def test_parallel_run_matches_sequential(tmp_path: Path):
    srcs = []
    for i in range(6):
        lines = "".join(f"{j:04x} {0x1000 * (1 + (i + j) % 3):x} {j}\n" for j in range(20))
        srcs.append(_write(tmp_path / f"t{i}.trace", lines))
    _write(tmp_path / "broken.trace", "xyz\n")
    seq = run_batch(REF, srcs + [tmp_path / "broken.trace"], UnifyOptions(output_dir=tmp_path / "seq", jobs=1))
    par = run_batch(REF, srcs + [tmp_path / "broken.trace"], UnifyOptions(output_dir=tmp_path / "par", jobs=3))
    assert [o.source for o in par.outcomes] == [o.source for o in seq.outcomes]
    assert [(o.kept, o.dropped, o.ok) for o in par.outcomes] == [(o.kept, o.dropped, o.ok) for o in seq.outcomes]
    for src in srcs:
        name = src.stem + ".unified"
        assert (tmp_path / "par" / name).read_text() == (tmp_path / "seq" / name).read_text()

def test_check_ids_failure_is_per_file(tmp_path: Path):
    ok = _write(tmp_path / "ok.trace", SCENARIO)
    gapped = _write(tmp_path / "gapped.trace", "0000 1000 1\n0002 2000 1\n")
    result = run_batch(REF, [ok, gapped], UnifyOptions(output_dir=tmp_path / "out", jobs=1, check_ids=True))
    assert [o.source for o in result.failed] == [gapped]

def test_integrity_violation_aborts_run(tmp_path: Path, monkeypatch):
    src = _write(tmp_path / "a.trace", SCENARIO)

    def broken(*args, **kwargs):
        raise IntegrityViolation("accounting mismatch")

    monkeypatch.setattr(batch, "unify_file", broken)
    with pytest.raises(IntegrityViolation):
        run_batch(REF, [src], UnifyOptions(jobs=1))

def test_verbose_reports_drop_counts(tmp_path: Path, caplog):
    src = _write(tmp_path / "a.trace", SCENARIO)
    with caplog.at_level("INFO", logger="bbunify.batch"):
        run_batch(REF, [src], UnifyOptions(output_dir=tmp_path / "out", verbose=True, jobs=1))
    assert "dropped 1 of 3 entries" in caplog.text
    assert str(src) in caplog.text

def test_unify_paths_loads_reference(tmp_path: Path):
    valid = _write(tmp_path / "valid.txt", "1000\n2000\n")
    src = _write(tmp_path / "a.trace", SCENARIO)
    ref, result = unify_paths(valid, [src], UnifyOptions(output_dir=tmp_path / "out", jobs=1))
    assert len(ref) == 2
    assert result.ok
    with pytest.raises(OSError):
        unify_paths(tmp_path / "nope.txt", [src])

def test_undecodable_file_fails_alone(tmp_path: Path):
    good = _write(tmp_path / "good.trace", SCENARIO)
    bad = tmp_path / "bad.trace"
    bad.write_bytes(b"0000 1000 5\n\xff\xfe 2000 1\n")
    out = tmp_path / "out"
    result = run_batch(REF, [good, bad], UnifyOptions(output_dir=out, jobs=1))
    assert [o.source for o in result.failed] == [bad]
    assert "bad.trace:2" in result.failed[0].error
    assert (out / "good.unified").read_text(encoding="utf-8") == "0000 1000 5\n0001 2000 7\n"

def test_rerun_in_place_skips_earlier_outputs(tmp_path: Path):
    d = tmp_path / "traces"
    d.mkdir()
    _write(d / "a.trace", SCENARIO)
    first = run_batch(REF, [d], UnifyOptions(jobs=1))
    assert [o.source for o in first.outcomes] == [d / "a.trace"]
    assert (d / "a.unified").exists()
    second = run_batch(REF, [d], UnifyOptions(strip=True, jobs=1))
    assert [o.source for o in second.outcomes] == [d / "a.trace"]
    files, _ = expand_inputs([d])
    assert files == [d / "a.trace"]
