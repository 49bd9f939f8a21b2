import setuptools

with open("README.md", "r", encoding='utf-8') as fh:
    long_description = fh.read()

install_requires = [
    "numpy",
    "taichi",
    "tqdm",
    "diplib",
]

setuptools.setup(
    name="eulergvf",
    version="0.1.0",
    description="Compute Gradient Vector Flow on R^2 and R^3 with explicit Euler steps in Taichi",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    install_requires=install_requires,
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: POSIX :: Linux",
        "Environment :: GPU :: NVIDIA CUDA",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Private :: Do Not Upload",
    ],
    python_requires=">=3.8",
)
