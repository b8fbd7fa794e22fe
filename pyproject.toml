[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "femsparse"
version = "0.1.0"
description = "Sparse CSR matrices, tetrahedral mesh topology, finite-element assembly and a GMRES solver in pure Python"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "sparse",
    "csr",
    "finite-elements",
    "gmres",
    "qr",
    "tetrahedra",
    "linear-algebra",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
femsparse-spmv = "femsparse.csr:main"
femsparse-matvec = "femsparse.matfiles:main"
femsparse-csrvec = "femsparse.matfiles:csr_main"
femsparse-topol = "femsparse.topology:main"
femsparse-fem = "femsparse.fem:main"

[tool.setuptools.packages.find]
include = ["femsparse*"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
