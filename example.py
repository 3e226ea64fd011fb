from fetch_unroll import Fetch

pack_url = (
    "https://github.com/{user}/{repo}/releases/download/"
    "{package}-{version}/{package}_{target}_{profile}.tar.gz"
).format(
    user="katyo",
    repo="aubio-rs",
    package="libaubio",
    version="0.5.0-alpha",
    target="armv7-linux-androideabi",
    profile="debug",
)

dest_dir = "target/test_download"

if __name__ == "__main__":
    Fetch.from_url(pack_url).unroll().strip_components(1).to(dest_dir)
    print("unrolled into", dest_dir)
