from setuptools import setup


VERSION = "1.0.0"


def get_long_description():
    with open("README.md") as f:
        return f.read()


def main():
    setup(
        name="haploid",
        version=VERSION,
        description=(
            "Genotype frequency dynamics of multi-locus haploid populations "
            "under selection, mating and recombination"
        ),
        long_description=get_long_description(),
        long_description_content_type="text/markdown",
        license="GPLv3+",
        packages=["haploid"],
        python_requires=">=3.8",
        install_requires=[
            "numpy>=1.20",
            "h5py>=3.0",
            "daiquiri>=3.0",
        ],
        extras_require={
            "test": ["pytest>=6.0"],
        },
        entry_points={
            "console_scripts": [
                "haploid=haploid.cli:haploid_main",
            ],
        },
        classifiers=[
            "Programming Language :: Python :: 3",
            "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
            "Topic :: Scientific/Engineering :: Bio-Informatics",
        ],
    )


if __name__ == "__main__":
    main()
