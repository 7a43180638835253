import json
import logging
import struct

import google_crc32c
import pytest

from voc_records.cli import main
from voc_records.core.errors import EmptyVocabulary, MalformedAnnotation, MissingAnnotation
from voc_records.core.tf_protos import Example
from voc_records.services import LoggingService, PrepareConfig, PrepareService

from conftest import make_pair
from wire import decode_example, masked, read_records


def _config(dataset, out, **kwargs):
    return PrepareConfig(input_dirs=[dataset], output_dir=out, **kwargs)


def test_prepare_scenario(dataset, tmp_path, memory_logger):
    out = tmp_path / "out"
    report = PrepareService(memory_logger).run(_config(dataset, out))

    train = read_records(out / "train.records")
    test = read_records(out / "test.records")
    assert (len(train), len(test)) == (8, 2)
    assert (report.train, report.test, report.examples) == (8, 2, 10)

    label_map = (out / "label_map.pbtxt").read_text(encoding="utf-8")
    assert label_map.count("item {") == 3
    assert label_map.index('"bird"') < label_map.index('"cat"') < label_map.index('"dog"')
    assert report.labels == {"bird": 1, "cat": 2, "dog": 3}

    saved = json.loads((out / "reports" / "prepare_report.json").read_text(encoding="utf-8"))
    assert saved["totals"] == {"examples": 10, "train": 8, "test": 2}


def test_records_match_the_label_map(dataset, tmp_path):
    out = tmp_path / "out"
    PrepareService().run(_config(dataset, out))
    ids = {"bird": 1, "cat": 2, "dog": 3}
    filenames = set()
    for name in ("train.records", "test.records"):
        for data in read_records(out / name):
            features = decode_example(data)
            texts = [t.decode() for t in features["image/object/class/text"][1]]
            labels = features["image/object/class/label"][1]
            assert labels == [ids[t] for t in texts]
            (filename,) = features["image/filename"][1]
            assert features["image/source_id"][1] == [filename]
            assert features["image/encoded"][1] == [(dataset / filename.decode()).read_bytes()]
            assert features["image/format"][1] == [b"jpg"]
            filenames.add(filename)
    assert len(filenames) == 10


def test_repeated_runs_are_identical(dataset, tmp_path):
    first, second = tmp_path / "first", tmp_path / "second"
    PrepareService().run(_config(dataset, first, workers=1))
    PrepareService().run(_config(dataset, second, workers=4))
    for name in ("train.records", "test.records", "label_map.pbtxt"):
        assert (first / name).read_bytes() == (second / name).read_bytes()


def test_seed_changes_the_split(dataset, tmp_path):
    a, b = tmp_path / "a", tmp_path / "b"
    PrepareService().run(_config(dataset, a, seed=1))
    PrepareService().run(_config(dataset, b, seed=2))
    assert (a / "train.records").read_bytes() != (b / "train.records").read_bytes()


def test_single_image_writes_empty_test_file(tmp_path):
    make_pair(tmp_path / "one", "only", [("cat", 1, 1, 50, 50)])
    out = tmp_path / "out"
    report = PrepareService().run(_config(tmp_path / "one", out))
    assert report.test == 0
    assert (out / "test.records").read_bytes() == b""
    assert len(read_records(out / "train.records")) == 1


def test_missing_annotation_writes_nothing(dataset, tmp_path):
    (dataset / "orphan.jpg").write_bytes(b"\xff\xd8\xff")
    out = tmp_path / "out"
    with pytest.raises(MissingAnnotation):
        PrepareService().run(_config(dataset, out))
    assert not out.exists()


def test_malformed_annotation_aborts(dataset, tmp_path):
    (dataset / "img_03.xml").write_text("<annotation><size></size></annotation>", encoding="utf-8")
    out = tmp_path / "out"
    with pytest.raises(MalformedAnnotation) as exc:
        PrepareService().run(_config(dataset, out, workers=3))
    assert exc.value.path == dataset / "img_03.xml"
    assert not out.exists()


def test_no_labels(tmp_path):
    make_pair(tmp_path / "d", "a", [])
    with pytest.raises(EmptyVocabulary):
        PrepareService().run(_config(tmp_path / "d", tmp_path / "out"))


def test_explicit_pairs(dataset, tmp_path):
    pairs = [(dataset / f"img_0{i}.jpg", dataset / f"img_0{i}.xml") for i in range(3)]
    report = PrepareService().run(_config(dataset, tmp_path / "out", write_report=False), pairs=pairs)
    assert report.examples == 3
    assert not (tmp_path / "out" / "reports").exists()

    pairs.append((dataset / "nope.jpg", dataset / "nope.xml"))
    with pytest.raises(MissingAnnotation):
        PrepareService().run(_config(dataset, tmp_path / "out2"), pairs=pairs)


def test_progress_callback(dataset, tmp_path):
    seen = []
    PrepareService().run(_config(dataset, tmp_path / "out"), progress_cb=lambda p: seen.append(p.value))
    assert sorted(seen) == list(range(1, 11))


def test_cli(dataset, tmp_path, capsys):
    out = tmp_path / "cli"
    code = main(["prepare", "-i", str(dataset), "-o", str(out), "--retain", "30%", "--ext", "tfrecord"])
    assert code == 0
    assert len(read_records(out / "train.tfrecord")) == 7
    assert len(read_records(out / "test.tfrecord")) == 3
    assert "10 examples" in capsys.readouterr().out
    assert (out / "logs" / "prepare.log").is_file()


def test_cli_reports_errors(dataset, tmp_path):
    (dataset / "orphan.png").write_bytes(b"\x89PNG")
    assert main(["prepare", "-i", str(dataset), "-o", str(tmp_path / "cli")]) == 1


def test_train_records_parse_as_examples(dataset, tmp_path):
    out = tmp_path / "out"
    PrepareService().run(_config(dataset, out))
    buf = (out / "train.records").read_bytes()
    pos = examples = 0
    while pos < len(buf):
        (length,) = struct.unpack_from("<Q", buf, pos)
        (len_crc,) = struct.unpack_from("<I", buf, pos + 8)
        data = buf[pos + 12:pos + 12 + length]
        (data_crc,) = struct.unpack_from("<I", buf, pos + 12 + length)
        assert len_crc == masked(google_crc32c.value(buf[pos:pos + 8]))
        assert data_crc == masked(google_crc32c.value(data))

        example = Example()
        example.ParseFromString(data)
        feature = example.features.feature
        assert feature["image/format"].bytes_list.value == [b"jpg"]
        assert feature["image/height"].int64_list.value == [360]
        texts = feature["image/object/class/text"].bytes_list.value
        assert len(feature["image/object/bbox/xmin"].float_list.value) == len(texts)
        examples += 1
        pos += 16 + length
    assert examples == 8


def test_run_log_written_next_to_records(dataset, tmp_path):
    out = tmp_path / "out"
    report = PrepareService(LoggingService()).run(_config(dataset, out))

    log_path = out / "logs" / "prepare.log"
    assert report.outputs["log"] == str(log_path)
    text = log_path.read_text(encoding="utf-8")
    assert "Run started [images=10, labels=3, seed=42, test_ratio=0.2]" in text
    assert "Wrote 8 examples" in text and "Wrote 2 examples" in text
    # the encode lanes are named in every line they log
    assert " - encode_" in text
    assert not logging.getLogger("voc_records").handlers[1:]

    # a second run starts a fresh log
    PrepareService(LoggingService()).run(_config(dataset, out))
    assert log_path.read_text(encoding="utf-8").count("Run started") == 1


def test_run_log_can_be_disabled(dataset, tmp_path):
    out = tmp_path / "out"
    report = PrepareService(LoggingService()).run(_config(dataset, out, run_log=False))
    assert "log" not in report.outputs
    assert not (out / "logs").exists()


def test_failure_is_logged_with_its_path(dataset, tmp_path, memory_logger):
    (dataset / "img_03.xml").write_text("<annotation><size></size></annotation>", encoding="utf-8")
    with pytest.raises(MalformedAnnotation):
        PrepareService(memory_logger).run(_config(dataset, tmp_path / "out"))
    errors = [e for e in memory_logger.entries if e[0] == "ERROR"]
    assert len(errors) == 1
    assert errors[0][1].startswith("Preparation failed: ")
    assert str(dataset / "img_03.xml") in errors[0][2]["exception"]
