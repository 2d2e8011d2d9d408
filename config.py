"""
Configuration file for the word bubble pipeline.
Modify this file to customize the pipeline's behavior.
"""

# Asset configuration
ASSET_CONFIG = {
    "embedding_path": "word2vec/embeddings.npy",  # Embedding matrix (.npy or .npz)
    "vocabulary_path": "vocabulary.json",  # Flat JSON object word -> row index
    "lemma_path": None,  # Optional "surface<TAB>base" lemma table
    "embedding_key": None,  # Array name inside an .npz archive
    "transpose_embeddings": False,  # Set when weights are stored [D, V]
    "load_workers": 3,  # Threads used to load the three assets
    "load_timeout": None,  # Seconds to wait for assets (None waits forever)
}

# Tokenization configuration
ANALYSIS_CONFIG = {
    "case_sensitive": False,  # Whether to consider case in word matching
    "strip_punctuation": True,  # Whether to remove punctuation
    "plural_handling": True,  # Whether to handle plural forms
    "max_plural_attempts": 3,  # Maximum attempts for plural stripping
}

# t-SNE configuration
PROJECTION_CONFIG = {
    "n_components": 2,
    "perplexity": 30.0,  # Effective number of neighbors
    "early_exaggeration": 4.0,  # Cluster separation during the first phase
    "exaggeration_iterations": 100,
    "learning_rate": 100.0,
    "n_iter": 200,  # Fixed iteration budget
    "metric": "euclidean",
    "random_state": 42,  # Seed for the initial embedding
}

# Clustering configuration
CLUSTERING_CONFIG = {
    "default_clusters": 5,
    "max_clusters": 10,  # Upper bound enforced by the pipeline
    "n_init": 10,  # KMeans restarts
    "random_state": 42,
}

# Radius configuration
RADIUS_CONFIG = {
    "min_radius": 6.0,
    "max_radius": 30.0,
}

# Declutter (force simulation) configuration
LAYOUT_CONFIG = {
    "position_scale": 600.0,  # Projection [-1, 1] -> layout units
    "charge_strength": 10.0,  # Repulsion between every pair of bubbles
    "charge_distance_min": 1.0,
    "collide_padding": 1.0,  # Added to each radius for collisions
    "collide_iterations": 30,
    "collide_strength": 1.0,
    "center_strength": 0.1,  # Pull toward x=0 and y=0
    "ticks": 100,  # Fixed number of simulation steps
    "alpha": 1.0,
    "alpha_min": 0.001,
    "velocity_decay": 0.4,
}

# Font fitting configuration
FONT_CONFIG = {
    "font_family": "DejaVuSans.ttf",  # TrueType file name or path
    "font_weight": "normal",
    "min_size": 0.0,
    "max_size": 100.0,
    "iterations": 10,  # Bisection rounds (precision ~0.1)
}

# Output configuration
OUTPUT_CONFIG = {
    "timing_info": True,  # Show execution time of each stage
    "verbose": True,  # Show detailed progress information
    "palette": "tab10",  # Matplotlib colormap used for group colors
}
