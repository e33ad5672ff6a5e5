import matplotlib

# plots are only ever written to files in tests
matplotlib.use('Agg')
