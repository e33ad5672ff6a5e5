import numpy as np
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d.art3d import Line3DCollection

# turtle3d grows along +y; matplotlib's 3D axes put "up" on z
def _y_up_to_z_up(points):
    return points[..., [0, 2, 1]]

def plot_segments(segments, image_filename='segment_plot.png',
                  radii=None, nodes=None, colors=None):

    assert len(segments.shape) == 3 and segments.shape[1:] == (2, 3)

    if colors is None:
        colors = dict(trunk='#5D4037', leaf='#2E7D32')

    widths = 1.0
    if radii is not None and len(radii):
        radii = np.asarray(radii, dtype=float)
        if radii.max() > 0:
            widths = 0.5 + 6.0 * radii / radii.max()

    fig = plt.figure()
    ax = fig.add_subplot(projection='3d')

    if len(segments):
        lc = Line3DCollection(_y_up_to_z_up(segments),
                              color=colors['trunk'], linewidths=widths)
        ax.add_collection3d(lc)
        points = segments.reshape(-1, 3)
    else:
        points = np.zeros((1, 3))

    if nodes is not None and len(nodes):
        nodes = _y_up_to_z_up(np.asarray(nodes, dtype=float))
        ax.scatter(nodes[:, 0], nodes[:, 1], nodes[:, 2],
                   color=colors['leaf'], s=8, depthshade=False)
        points = np.vstack((points, nodes[:, [0, 2, 1]]))

    # equal scaling on all three axes
    points = _y_up_to_z_up(points)
    lo = points.min(axis=0)
    hi = points.max(axis=0)
    center = 0.5 * (lo + hi)
    half = max(0.5 * (hi - lo).max(), 1e-3)

    ax.set_xlim(center[0] - half, center[0] + half)
    ax.set_ylim(center[1] - half, center[1] + half)
    ax.set_zlim(center[2] - half, center[2] + half)

    ax.set_axis_off()

    fig.savefig(image_filename)
    plt.close(fig)
    print('wrote ' + image_filename)

    return image_filename


if __name__ == '__main__':

    segments = np.genfromtxt('segments.txt').reshape(-1, 2, 3)

    plot_segments(segments)
