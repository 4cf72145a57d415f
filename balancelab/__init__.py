"""balancelab: post-session handling balance analysis and setup recommendations."""
