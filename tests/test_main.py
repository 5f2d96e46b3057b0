import logging

import mido
import pytest

import chordwalk.__main__
import chordwalk.transitions


def test_transitions_command (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["transitions", "0:d7", "5:maj7", "-q"]) == 0

	lines = capsys.readouterr().out.splitlines()

	assert lines
	assert all("->" in line for line in lines)


def test_transitions_needs_two_chords (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["transitions", "0:d7", "-q"]) == 1


def test_transitions_of_one_degree (capsys: pytest.CaptureFixture) -> None:

	"""Bb-C-G-E to A-C-F-E moves Bb five steps along the line of fifths."""

	assert chordwalk.__main__.main(["transitions", "0:d7", "5:maj7", "-g", "5", "-q"]) == 0

	pairs = [line.split(" -> ") for line in capsys.readouterr().out.splitlines()]

	assert any(
		set(a.split("-")) == {"Bb", "C", "G", "E"} and set(b.split("-")) == {"A", "C", "F", "E"} for a, b in pairs
	)

	assert chordwalk.__main__.main(["transitions", "0:d7", "5:maj7", "-g", "0", "-q"]) == 1


def test_transitions_as_lilypond (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["transitions", "0:d7", "5:maj7", "--lilypond", "--chord-symbols", "-q"]) == 0

	out = capsys.readouterr().out

	assert out.startswith("\\include")
	assert "\\markup\\sans{Fmaj7}" in out
	assert all(line.endswith(" |") for line in out.splitlines() if line.startswith("\t\t<"))


def test_classes_of_one_degree (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["classes", "0:d7", "5:maj7", "-g", "5", "-q"]) == 0
	assert capsys.readouterr().out


def test_voicing_command (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["voicing", "0:d7", "5:maj7", "-q"]) == 0

	lines = capsys.readouterr().out.splitlines()

	assert len(lines) == 2
	assert set(lines[0].split("-")) == {"Bb", "C", "G", "E"}
	assert set(lines[1].split("-")) == {"A", "C", "F", "E"}


def test_voicing_keeps_repeated_chords (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["voicing", "0:d7", "5:maj7", "0:d7", "-q"]) == 0

	lines = [line for line in capsys.readouterr().out.splitlines() if not line.startswith("(")]

	assert len(lines) == 3


def test_voicing_rejects_repeated_neighbours () -> None:

	assert chordwalk.__main__.main(["voicing", "0:d7", "0:d7", "-q"]) == 1


def test_voicing_writes_midi (tmp_path: "pytest.TempPathFactory") -> None:

	path = tmp_path / "cadence.mid"

	assert chordwalk.__main__.main(["voicing", "0:d7", "5:maj7", "--midi", str(path), "-q"]) == 0

	notes = [msg for msg in mido.MidiFile(str(path)).tracks[0] if msg.type == "note_on"]

	assert len(notes) == 8


def test_voicings_command (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["voicings", "0:d7", "5:maj7", "-q"]) == 0

	assert "Voicing #1:" in capsys.readouterr().out


def test_bad_weights () -> None:

	assert chordwalk.__main__.main(["voicing", "0:d7", "5:maj7", "-w", "1", "-1", "1", "-q"]) == 1


def test_paths_command (capsys: pytest.CaptureFixture) -> None:

	"""C7 and Fmaj7 are adjacent, so the only shortest path is the arc itself."""

	assert chordwalk.__main__.main(["paths", "0:d7", "5:maj7", "-q"]) == 0

	assert capsys.readouterr().out.splitlines() == ["0:d7 5:maj7"]


def test_paths_need_graph_endpoints () -> None:

	assert chordwalk.__main__.main(["paths", "0:d7", "5:maj7", "2:m7", "5:maj7", "-q"]) == 1


def test_graph_command (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["graph", "0:d7", "5:maj7", "-q"]) == 0

	out = capsys.readouterr().out

	assert out.startswith("graph {")
	assert "  v1 -- v2;" in out.splitlines()


def test_graph_with_centrality_colors (capsys: pytest.CaptureFixture) -> None:

	assert chordwalk.__main__.main(["graph", "0:d7", "5:maj7", "2:m7", "-v", "color", "--centrality", "closeness", "-q"]) == 0

	assert "fillcolor" in capsys.readouterr().out


def test_input_file (tmp_path: "pytest.TempPathFactory", capsys: pytest.CaptureFixture) -> None:

	path = tmp_path / "chords.txt"
	path.write_text("0:d7,\n5:maj7\n")

	assert chordwalk.__main__.main(["transitions", "-i", str(path), "-q"]) == 0
	assert capsys.readouterr().out


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def test_missing_config_uses_defaults (tmp_path: "pytest.TempPathFactory", caplog: pytest.LogCaptureFixture) -> None:

	with caplog.at_level(logging.WARNING):
		assert chordwalk.__main__.load_config(str(tmp_path / "missing.yaml")) == {}

	assert "not found" in caplog.text


def test_config_supplies_settings (tmp_path: "pytest.TempPathFactory", caplog: pytest.LogCaptureFixture) -> None:

	path = tmp_path / "chordwalk.yaml"
	path.write_text("class_index: 5\ndomain: '-7:7'\npreparation: acoustic\nspeed: 3\n")

	with caplog.at_level(logging.WARNING):
		config = chordwalk.__main__.load_config(str(path))

	assert "speed" in caplog.text

	parser = chordwalk.__main__.build_parser()
	settings = chordwalk.__main__.resolve_settings(parser.parse_args(["transitions"]), config)

	assert settings["class_index"] == 5
	assert 7 in settings["domain"]
	assert 8 not in settings["domain"]
	assert settings["preparation"] == chordwalk.transitions.PreparationScheme.ACOUSTIC
	assert settings["weights"] == [1.0, 1.75, 0.25]


def test_command_line_overrides_config (tmp_path: "pytest.TempPathFactory") -> None:

	parser = chordwalk.__main__.build_parser()
	args = parser.parse_args(["transitions", "-c", "6", "-z", "-2"])
	settings = chordwalk.__main__.resolve_settings(args, {"class_index": 5, "tonal_center": 3})

	assert settings["class_index"] == 6
	assert settings["tonal_center"] == -2


def test_config_must_be_a_mapping (tmp_path: "pytest.TempPathFactory") -> None:

	path = tmp_path / "list.yaml"
	path.write_text("- 1\n- 2\n")

	with pytest.raises(ValueError):
		chordwalk.__main__.load_config(str(path))


def test_key_signature () -> None:

	assert chordwalk.__main__.key_signature(0) == "0 sharps/flats"
	assert chordwalk.__main__.key_signature(3) == "3 sharps"
	assert chordwalk.__main__.key_signature(-2) == "2 flats"
