import numpy as np
import pytest

from plot_segments import plot_segments
from turtle3d import interpret, node_positions, segments_array


class TestPlotSegments:
    def test_writes_png(self, tmp_path, capsys):
        branches, nodes = interpret('FF[&FA][^FB]F[+&FA]')
        image = tmp_path / 'plant.png'
        result = plot_segments(segments_array(branches), str(image),
                               radii=[b.radius for b in branches],
                               nodes=node_positions(nodes))
        assert result == str(image)
        assert image.stat().st_size > 0
        assert 'wrote ' + str(image) in capsys.readouterr().out

    def test_segments_only(self, tmp_path):
        branches, _ = interpret('F[+&F]')
        image = tmp_path / 'bare.png'
        plot_segments(segments_array(branches), str(image))
        assert image.exists()

    def test_empty(self, tmp_path):
        image = tmp_path / 'empty.png'
        plot_segments(np.zeros((0, 2, 3)), str(image))
        assert image.exists()

    def test_rejects_2d_segments(self, tmp_path):
        with pytest.raises(AssertionError):
            plot_segments(np.zeros((3, 2, 2)), str(tmp_path / 'flat.png'))
